import json
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, computed_field, field_validator, model_validator

from leveling import level_for_points

# --- ENUMS & POINT VALUES ---
class UserRole(str, Enum):
    STUDENT = "STUDENT"
    ADMIN = "ADMIN"

class ActionType(str, Enum):
    RECYCLE = "RECYCLE"
    COMMUTE = "COMMUTE"
    REPORT = "REPORT"
    GREEN_POINT = "GREEN_POINT"
    ENERGY_POINT = "ENERGY_POINT"
    GREASE_TRAP = "GREASE_TRAP"
    HAZARD_SCAN = "HAZARD_SCAN"
    REDEMPTION = "REDEMPTION"

class PinType(str, Enum):
    HAZARD = "HAZARD"
    FULL_BIN = "FULL_BIN"
    MAINTENANCE = "MAINTENANCE"

class PinStatus(str, Enum):
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"

# Fixed rewards for actions that are not priced by an AI scan
POINT_VALUES = {
    ActionType.COMMUTE: 15,
    ActionType.GREEN_POINT: 50,
    ActionType.ENERGY_POINT: 100,
    ActionType.REPORT: 30,
}

CommuteMode = Literal["Bus", "BTS/MRT", "Walk", "Bicycle", "Carpool"]


class InvalidPinTransition(ValueError):
    """Raised when a map pin is asked to move from RESOLVED back to OPEN."""


# --- USERS ---
class User(BaseModel):
    # Remote records sometimes carry numeric ids
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    schoolId: str
    name: str = "Student"
    role: UserRole = UserRole.STUDENT
    classRoom: Optional[str] = None
    points: int = 0

    @model_validator(mode="before")
    @classmethod
    def _points_from_legacy_xp(cls, data):
        # Older records only carried an xp counter
        if isinstance(data, dict) and data.get("points") is None and data.get("xp") is not None:
            data = {**data, "points": data["xp"]}
        return data

    @computed_field
    @property
    def xp(self) -> int:
        return self.points

    @computed_field
    @property
    def level(self) -> int:
        return level_for_points(self.points)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def with_points(self, total: int) -> "User":
        return self.model_copy(update={"points": total})


# --- AI RESULTS ---
class ScanResult(BaseModel):
    category: Literal["waste", "grease_trap", "hazard", "unknown"]
    label: str
    bin_color: Optional[str] = None
    upcycling_tip: Optional[str] = None
    maintenance_status: Optional[str] = None
    risk_level: Optional[str] = None
    point_reward: int = Field(default=0, ge=0)
    carbon_saved: Optional[float] = None

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value):
        value = str(value or "").strip().lower()
        return value if value in ("waste", "grease_trap", "hazard") else "unknown"

class BillReading(BaseModel):
    units: float
    amount: float
    month: str


# --- MAP PINS ---
class MapPin(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    x: float = Field(ge=0, le=100)
    y: float = Field(ge=0, le=100)
    type: PinType
    description: str
    status: PinStatus = PinStatus.OPEN

    def transition(self, status: PinStatus) -> "MapPin":
        """OPEN -> RESOLVED only. Same-state requests are no-ops."""
        if status == self.status:
            return self
        if self.status == PinStatus.RESOLVED:
            raise InvalidPinTransition(f"Pin {self.id} is already resolved and cannot be reopened.")
        return self.model_copy(update={"status": status})


# --- ACTIVITY LOG ENTRIES ---
class Evidence(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: str  # base64, no data-url prefix
    mime_type: str = "image/jpeg"
    file_name: Optional[str] = None

class _ActivityEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    evidence: Optional[Evidence] = None

    @property
    def points(self) -> int:
        raise NotImplementedError

    @property
    def category(self) -> str:
        return self.kind.value.lower()

    @property
    def label(self) -> str:
        return "Activity"

    def ai_data(self) -> dict:
        return {}

    def to_envelope(self, user_id: str) -> dict:
        """The LOG_ACTIVITY action sent to the spreadsheet endpoint."""
        return {
            "action": "LOG_ACTIVITY",
            "userId": user_id,
            "type": self.kind.value,
            "category": self.category,
            "label": self.label,
            "points": self.points,
            "fileBase64": self.evidence.data if self.evidence else None,
            "mimeType": self.evidence.mime_type if self.evidence else "image/jpeg",
            "fileName": self.evidence.file_name if self.evidence else None,
            "aiData": json.dumps(self.ai_data(), ensure_ascii=False),
        }

class _ScanEntry(_ActivityEntry):
    scan: ScanResult

    @property
    def points(self) -> int:
        return self.scan.point_reward

    @property
    def category(self) -> str:
        return self.scan.category

    @property
    def label(self) -> str:
        return self.scan.label

    def ai_data(self) -> dict:
        return self.scan.model_dump(exclude_none=True)

class RecycleEntry(_ScanEntry):
    kind: Literal[ActionType.RECYCLE] = ActionType.RECYCLE

class GreaseTrapEntry(_ScanEntry):
    kind: Literal[ActionType.GREASE_TRAP] = ActionType.GREASE_TRAP

class HazardScanEntry(_ScanEntry):
    kind: Literal[ActionType.HAZARD_SCAN] = ActionType.HAZARD_SCAN

class CommuteEntry(_ActivityEntry):
    kind: Literal[ActionType.COMMUTE] = ActionType.COMMUTE
    mode: CommuteMode

    @property
    def points(self) -> int:
        return POINT_VALUES[ActionType.COMMUTE]

    @property
    def label(self) -> str:
        return f"Travel by {self.mode}"

class GreenPointEntry(_ActivityEntry):
    kind: Literal[ActionType.GREEN_POINT] = ActionType.GREEN_POINT
    evidence: Evidence

    @property
    def points(self) -> int:
        return POINT_VALUES[ActionType.GREEN_POINT]

    @property
    def category(self) -> str:
        return "green"

    @property
    def label(self) -> str:
        return "Eco-Video Evidence"

class EnergyPointEntry(_ActivityEntry):
    kind: Literal[ActionType.ENERGY_POINT] = ActionType.ENERGY_POINT
    bill: BillReading

    @property
    def points(self) -> int:
        return POINT_VALUES[ActionType.ENERGY_POINT]

    @property
    def category(self) -> str:
        return "energy"

    @property
    def label(self) -> str:
        return f"Electricity Bill - {self.bill.month}"

    def ai_data(self) -> dict:
        return self.bill.model_dump()

class ReportEntry(_ActivityEntry):
    kind: Literal[ActionType.REPORT] = ActionType.REPORT
    pin: MapPin

    @property
    def points(self) -> int:
        return POINT_VALUES[ActionType.REPORT]

    @property
    def label(self) -> str:
        return self.pin.description

    def ai_data(self) -> dict:
        return self.pin.model_dump(mode="json")

class RedemptionEntry(_ActivityEntry):
    kind: Literal[ActionType.REDEMPTION] = ActionType.REDEMPTION
    reward_id: str
    title: str
    cost: int = Field(gt=0)

    @property
    def points(self) -> int:
        return -self.cost

    @property
    def label(self) -> str:
        return f"Redeemed {self.title}"

ActivityEntry = Annotated[
    Union[RecycleEntry, GreaseTrapEntry, HazardScanEntry, CommuteEntry,
          GreenPointEntry, EnergyPointEntry, ReportEntry, RedemptionEntry],
    Field(discriminator="kind"),
]
activity_entry_adapter = TypeAdapter(ActivityEntry)


# --- REWARDS ---
class Reward(BaseModel):
    id: str
    title: str
    cost: int
    icon: str
    description: str

class RedemptionResponse(BaseModel):
    reward: Reward
    code: str
    points: int
    level: int
    offline: bool = False


# --- FEED, LEADERBOARD & ADMIN ---
class FeedItem(BaseModel):
    id: str
    user: str
    action: ActionType
    description: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    likes: int = 0
    imageUrl: Optional[str] = None

class LeaderboardEntry(BaseModel):
    rank: int
    id: str
    name: str
    classRoom: Optional[str] = None
    points: int = 0
    level: int = 1
    isCurrentUser: bool = False

class ClassStanding(BaseModel):
    rank: int
    name: str
    points: int
    members: int

class SchoolStats(BaseModel):
    totalStudents: int = 0
    totalPoints: int = 0
    pendingReports: int = 0
    carbonSaved: float = 0

class LeaderboardResponse(BaseModel):
    leaders: List[LeaderboardEntry]
    offline: bool = False


# --- REQUESTS ---
class LoginRequest(BaseModel):
    schoolId: str = Field(min_length=1, max_length=64)

class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=80)
    schoolId: str = Field(min_length=1, max_length=64)
    classRoom: Optional[str] = Field(default=None, max_length=20)

class CommuteRequest(BaseModel):
    mode: CommuteMode

class PinRequest(BaseModel):
    x: float = Field(ge=0, le=100)
    y: float = Field(ge=0, le=100)
    type: PinType = PinType.FULL_BIN
    description: str = Field(min_length=1, max_length=500)

class PinStatusRequest(BaseModel):
    status: PinStatus
