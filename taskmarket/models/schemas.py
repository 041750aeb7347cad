from typing import Optional, List, Literal
from pydantic import BaseModel, EmailStr, computed_field

from taskmarket.core.constants import REQUIRED_REELS

UserRole = Literal["business_owner", "freelancer", "admin"]
TaskStatus = Literal["open", "in_progress", "completed", "cancelled"]
ApplicationStatus = Literal["pending", "accepted", "rejected"]
SortOption = Literal["newest", "oldest", "budget_high", "budget_low"]


class UserBase(BaseModel):
    email: EmailStr
    full_name: str
    role: UserRole
    phone: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    instagram_id: Optional[str] = None
    sample_reels: Optional[List[str]] = None  # Video URLs, freelancers only

class UserCreate(BaseModel):
    email: EmailStr
    password: str
    full_name: str
    role: UserRole
    instagram_id: Optional[str] = None

class User(UserBase):
    id: str  # External identity id, also the users document id
    created_at: str

    @computed_field
    @property
    def profile_complete(self) -> bool:
        if self.role != "freelancer":
            return True
        reels = [r for r in (self.sample_reels or []) if r and r.strip()]
        return bool(self.instagram_id) and len(reels) >= REQUIRED_REELS

class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    instagram_id: Optional[str] = None
    sample_reels: Optional[List[str]] = None

class TaskBase(BaseModel):
    title: str
    description: str
    category: str
    budget: float
    location: str

class TaskCreate(TaskBase):
    pass

class Task(TaskBase):
    id: str
    business_owner_id: str  # Foreign Key to User (Business Owner)
    status: TaskStatus
    created_at: str
    updated_at: str
    business_owner: Optional[User] = None  # Read-time enrichment, never persisted

class TaskStatusUpdate(BaseModel):
    status: TaskStatus

class TaskFilter(BaseModel):
    category: Optional[str] = None
    location: Optional[str] = None
    status: Optional[TaskStatus] = None
    business_owner_id: Optional[str] = None

class ApplicationBase(BaseModel):
    proposal: str
    proposed_price: float

class ApplicationCreate(ApplicationBase):
    pass

class Application(ApplicationBase):
    id: str
    task_id: str  # Foreign Key to Task
    freelancer_id: str  # Foreign Key to User (Freelancer)
    status: ApplicationStatus
    created_at: str
    freelancer: Optional[User] = None
    task: Optional[Task] = None

class NotificationBase(BaseModel):
    type: str
    title: str
    message: str
    task_id: Optional[str] = None
    read: bool = False

class Notification(NotificationBase):
    id: str
    user_id: str  # Recipient
    created_at: str

class UnreadCount(BaseModel):
    unread: int

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class PasswordResetRequest(BaseModel):
    email: EmailStr

class Token(BaseModel):
    id_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    user_id: str
    token_type: str = "bearer"

class AdminStats(BaseModel):
    total_users: int
    business_owners: int
    freelancers: int
    admins: int
    total_tasks: int
    open_tasks: int
    in_progress_tasks: int
    completed_tasks: int
    cancelled_tasks: int
    total_applications: int
    pending_applications: int
    accepted_applications: int
    rejected_applications: int
