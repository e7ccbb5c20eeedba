from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys (browser client contract)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


MemberstackEnv = Literal["staging", "production"]


# ============================================
# Identity Schemas
# ============================================

class User(CamelModel):
    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    active_plans: List[str] = []
    best_plan_id: Optional[str] = None
    memberstack_id: str = ""


class UserSession(CamelModel):
    id: str
    user_email: str
    memberstack_id: str = ""
    first_name: str = ""
    last_name: str = ""
    active_plans: List[str] = []
    best_plan_id: Optional[str] = None
    created_at: datetime
    last_accessed: datetime
    expires_at: datetime
    is_active: bool = True

    def to_user(self) -> User:
        return User(
            id=self.id,
            email=self.user_email,
            first_name=self.first_name,
            last_name=self.last_name,
            active_plans=self.active_plans,
            best_plan_id=self.best_plan_id,
            memberstack_id=self.memberstack_id,
        )


# ============================================
# Memberstack Schemas
# ============================================

class PlanConnection(BaseModel):
    plan_id: str
    status: str


class Member(BaseModel):
    """Normalized Memberstack member record."""
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    plan_connections: List[PlanConnection] = []


# ============================================
# Auth Request/Response Schemas
# ============================================

class LoginRequest(CamelModel):
    email: str = ""
    memberstack_token: str = ""
    memberstack_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    env: MemberstackEnv = "staging"


class SignupRequest(CamelModel):
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    plan: str = ""
    memberstack_token: str = ""
    env: MemberstackEnv = "staging"


class AuthResponse(CamelModel):
    success: bool
    user: Optional[User] = None
    error: Optional[str] = None
    code: Optional[str] = None
    redirect_url: Optional[str] = None


# ============================================
# Subscription Schemas
# ============================================

class PlanSummary(CamelModel):
    id: str
    name: str
    tier: int
    description: str


class UsageSummary(CamelModel):
    property_reports_used: int
    property_reports_limit: int
    property_reports_left: int
    suburb_reports_used: int
    suburb_reports_limit: int
    suburb_reports_left: int


class FeatureFlags(CamelModel):
    suburb_finder: Literal["unlimited", "limited"]
    property_finder: Literal["unlimited", "limited"]
    csv_export: bool
    priority_support: bool


class SubscriptionData(CamelModel):
    plan: PlanSummary
    usage: UsageSummary
    features: FeatureFlags
