"""
Data models: the structure of our data.
Every row read from the store gets converted into these shapes before the
rest of the portal touches it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from dateutil.parser import isoparse


class ServiceType(str, Enum):
    GUIDE = "guide"
    MARKETPLACE = "marketplace"

    @property
    def label(self) -> str:
        if self is ServiceType.GUIDE:
            return "Tour Guide"
        if self is ServiceType.MARKETPLACE:
            return "Marketplace Vendor"
        raise ValueError(f"Unhandled service type: {self!r}")


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        if self is ApplicationStatus.PENDING:
            return False
        if self in (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED):
            return True
        raise ValueError(f"Unhandled status: {self!r}")

    def can_transition_to(self, target: "ApplicationStatus") -> bool:
        """Only pending → approved and pending → rejected exist."""
        return self is ApplicationStatus.PENDING and target.is_terminal


def _parse_timestamp(value) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return isoparse(value)


def _optional_int(value) -> Optional[int]:
    return int(value) if value is not None else None


def _optional_float(value) -> Optional[float]:
    return float(value) if value is not None else None


@dataclass
class Application:
    """A guide or marketplace-seller application, as stored in vendor_applications."""
    id: str
    name: str
    email: str
    phone: str
    service_type: ServiceType
    description: str
    status: ApplicationStatus = ApplicationStatus.PENDING
    specialties: list[str] = field(default_factory=list)
    languages: list[str] = field(default_factory=list)
    features: list[str] = field(default_factory=list)
    experience_years: Optional[int] = None
    location: Optional[str] = None
    cost_per_day: Optional[float] = None
    cost_per_hour: Optional[float] = None
    price: Optional[float] = None
    original_price: Optional[float] = None
    profile_image_url: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "Application":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            email=row.get("email") or "",
            phone=row.get("phone") or "",
            service_type=ServiceType(row["service_type"]),
            description=row.get("description") or "",
            status=ApplicationStatus(row.get("status") or ApplicationStatus.PENDING.value),
            specialties=list(row.get("specialties") or []),
            languages=list(row.get("languages") or []),
            features=list(row.get("features") or []),
            experience_years=_optional_int(row.get("experience_years")),
            location=row.get("location") or None,
            cost_per_day=_optional_float(row.get("cost_per_day")),
            cost_per_hour=_optional_float(row.get("cost_per_hour")),
            price=_optional_float(row.get("price")),
            original_price=_optional_float(row.get("original_price")),
            profile_image_url=row.get("profile_image_url") or None,
            rejection_reason=row.get("rejection_reason") or None,
            created_at=_parse_timestamp(row.get("created_at")),
            updated_at=_parse_timestamp(row.get("updated_at")),
        )


@dataclass
class Vendor:
    """A live vendor row. Only the store's approve_vendor function creates these."""
    id: str
    name: str
    email: str
    phone: str
    service_type: ServiceType
    description: str
    status: ApplicationStatus = ApplicationStatus.APPROVED
    created_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "Vendor":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            email=row.get("email") or "",
            phone=row.get("phone") or "",
            service_type=ServiceType(row["service_type"]),
            description=row.get("description") or "",
            status=ApplicationStatus(row.get("status") or ApplicationStatus.APPROVED.value),
            created_at=_parse_timestamp(row.get("created_at")),
            approved_at=_parse_timestamp(row.get("approved_at")),
        )


@dataclass
class Review:
    """A single customer review of a vendor. Read-only here."""
    id: str
    vendor_id: str
    customer_name: str
    rating: int                 # 1 to 5 stars
    comment: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "Review":
        return cls(
            id=str(row["id"]),
            vendor_id=str(row["vendor_id"]),
            customer_name=row.get("customer_name") or "",
            rating=int(row["rating"]),
            comment=row.get("comment") or None,
            created_at=_parse_timestamp(row.get("created_at")),
        )


@dataclass
class MarketplaceItem:
    """A product listing submitted by a local seller."""
    name: str
    category: str
    type: str
    description: str
    price: float
    features: list[str] = field(default_factory=list)
    location: str = ""
    image_url: str = ""             # public URL, kept in the image_path column
    original_price: Optional[float] = None
    shipping_time: str = "3-5 days"
    artisan: str = ""
    village: str = ""
    producer: str = ""
    weight: str = ""
    status: ApplicationStatus = ApplicationStatus.PENDING
    in_stock: bool = True
    rating: float = 0
    reviews: int = 0
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "MarketplaceItem":
        return cls(
            id=str(row["id"]) if row.get("id") is not None else None,
            name=row.get("name") or "",
            category=row.get("category") or "",
            type=row.get("type") or "",
            description=row.get("description") or "",
            price=float(row.get("price") or 0),
            features=list(row.get("features") or []),
            location=row.get("location") or "",
            image_url=row.get("image_path") or row.get("image_url") or "",
            original_price=_optional_float(row.get("original_price")),
            shipping_time=row.get("shipping_time") or "3-5 days",
            artisan=row.get("artisan") or "",
            village=row.get("village") or "",
            producer=row.get("producer") or "",
            weight=row.get("weight") or "",
            status=ApplicationStatus(row.get("status") or ApplicationStatus.PENDING.value),
            in_stock=bool(row.get("in_stock", True)),
            rating=float(row.get("rating") or 0),
            reviews=int(row.get("reviews") or 0),
            created_at=_parse_timestamp(row.get("created_at")),
        )

    def to_insert_dict(self) -> dict:
        return {
            "name": self.name,
            "category": self.category,
            "type": self.type,
            "description": self.description,
            "features": self.features,
            "location": self.location,
            "image_path": self.image_url,
            "price": self.price,
            "original_price": self.original_price,
            "shipping_time": self.shipping_time,
            "artisan": self.artisan,
            "village": self.village,
            "producer": self.producer,
            "weight": self.weight,
            "status": self.status.value,
            "in_stock": self.in_stock,
            "rating": self.rating,
            "reviews": self.reviews,
        }


# ------------------------------------------------------------
# Derived values
# ------------------------------------------------------------

@dataclass
class DashboardStats:
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    guides: int = 0             # approved guides only
    marketplace: int = 0        # approved sellers only
    avg_rating: float = 0.0
    approval_rate: int = 0      # percent of processed applications


@dataclass
class VendorRating:
    average: float = 0.0
    count: int = 0


@dataclass
class Snapshot:
    """Everything the admin console shows, fetched in one go."""
    applications: list[Application] = field(default_factory=list)
    reviews: list[Review] = field(default_factory=list)
    vendors: list[Vendor] = field(default_factory=list)


@dataclass
class LookupResult:
    """What an applicant sees after searching by email."""
    application: Optional[Application] = None
    vendor: Optional[Vendor] = None
    reviews: list[Review] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.application is not None or self.vendor is not None
