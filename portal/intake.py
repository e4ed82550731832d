"""
Intake: turning registration form input into new store rows.

Two forms feed the portal:
    - Guide / seller applications -> vendor_applications (status "pending")
    - Marketplace product listings -> marketplace (status "pending")

Both require an image. The image is uploaded first (overwriting any file
with the same name) and its public URL is saved on the row, so a listing
never points at a file that failed to upload.
"""

import math
import os
import re
import uuid
from dataclasses import dataclass
from typing import Optional

from portal.config import (
    ALLOWED_IMAGE_TYPES, MAX_IMAGE_BYTES,
    VENDOR_IMAGE_BUCKET, VENDOR_IMAGE_FOLDER, MARKETPLACE_IMAGE_BUCKET,
    MARKETPLACE_CATEGORIES, PRODUCT_TYPES, SHIPPING_TIMES, DEFAULT_SHIPPING_TIME,
)
from portal.database import PortalStore
from portal.errors import ValidationError
from portal.models import ApplicationStatus, MarketplaceItem, ServiceType

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Fallback extensions when the uploaded filename has none
EXTENSION_FOR_TYPE = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}


@dataclass
class ImageUpload:
    """An image file picked in a form."""
    filename: str
    content_type: str
    data: bytes

    @property
    def extension(self) -> str:
        ext = os.path.splitext(self.filename)[1].lstrip(".").lower()
        return ext or EXTENSION_FOR_TYPE.get(self.content_type, "img")


@dataclass
class GuideApplicationForm:
    """Raw text as typed into the guide / seller registration form."""
    name: str = ""
    email: str = ""
    phone: str = ""
    service_type: str = ServiceType.GUIDE.value
    description: str = ""
    specialties: str = ""       # comma-separated
    languages: str = ""         # comma-separated
    experience_years: str = ""
    location: str = ""
    cost_per_day: str = ""
    cost_per_hour: str = ""


@dataclass
class MarketplaceItemForm:
    """Raw text as typed into the marketplace product form."""
    name: str = ""
    category: str = ""
    type: str = ""
    description: str = ""
    features: str = ""          # comma-separated
    location: str = ""
    price: str = ""
    original_price: str = ""
    shipping_time: str = DEFAULT_SHIPPING_TIME
    artisan: str = ""
    village: str = ""
    producer: str = ""
    weight: str = ""


# ============================================================
# PART 1: Field parsing
# ============================================================

def split_list(value: str) -> list[str]:
    """'Trekking, , Folk music ' -> ['Trekking', 'Folk music']"""
    return [item.strip() for item in (value or "").split(",") if item.strip()]


def _required(value: str, field_name: str, label: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{label} is required.", field=field_name)
    return cleaned


def _optional_number(value: str, field_name: str, label: str, kind=float):
    cleaned = (value or "").strip()
    if not cleaned:
        return None
    try:
        number = kind(cleaned)
    except ValueError:
        raise ValidationError(f"{label} must be a number.", field=field_name) from None
    if not math.isfinite(number):
        raise ValidationError(f"{label} must be a number.", field=field_name)
    if number < 0:
        raise ValidationError(f"{label} cannot be negative.", field=field_name)
    return number


def safe_image_name(name: str) -> str:
    """
    Filename stem derived from the applicant's or product's name.
    e.g., "Ravi  Kumar!" -> "ravi_kumar"
    """
    stem = re.sub(r"\s+", "_", name.strip().lower())
    stem = re.sub(r"[^a-z0-9_]", "", stem)
    return stem if stem.strip("_") else uuid.uuid4().hex


def validate_image(image: Optional[ImageUpload], label: str = "profile image") -> ImageUpload:
    if image is None:
        raise ValidationError(f"Please upload a {label}.", field="image")
    if image.content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError("Unsupported file type. Use PNG, JPG, WebP or GIF.", field="image")
    if len(image.data) > MAX_IMAGE_BYTES:
        raise ValidationError("File too large. Max 5 MB.", field="image")
    return image


# ============================================================
# PART 2: Guide / seller applications
# ============================================================

def build_application_payload(form: GuideApplicationForm) -> dict:
    """
    Validate the form and build the vendor_applications row (minus the image URL).
    Raises ValidationError on the first problem found.
    """
    name = _required(form.name, "name", "Full name")
    email = _required(form.email, "email", "Email")
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Please enter a valid email address.", field="email")
    phone = _required(form.phone, "phone", "Phone number")
    try:
        service_type = ServiceType((form.service_type or "").strip())
    except ValueError:
        raise ValidationError("Please choose a service type.", field="service_type") from None
    description = _required(form.description, "description", "Description")

    return {
        "name": name,
        "email": email,
        "phone": phone,
        "service_type": service_type.value,
        "description": description,
        "specialties": split_list(form.specialties),
        "languages": split_list(form.languages),
        "experience_years": _optional_number(form.experience_years, "experience_years",
                                             "Years of experience", kind=int),
        "location": (form.location or "").strip(),
        "cost_per_day": _optional_number(form.cost_per_day, "cost_per_day", "Cost per day"),
        "cost_per_hour": _optional_number(form.cost_per_hour, "cost_per_hour", "Cost per hour"),
        "status": ApplicationStatus.PENDING.value,
    }


def submit_application(store: PortalStore, form: GuideApplicationForm,
                       image: Optional[ImageUpload]) -> dict:
    """
    Validate, upload the profile image, then insert a pending application.
    Returns the inserted row.
    """
    payload = build_application_payload(form)
    image = validate_image(image)

    path = f"{VENDOR_IMAGE_FOLDER}/{safe_image_name(payload['name'])}.{image.extension}"
    payload["profile_image_url"] = store.upload_image(
        VENDOR_IMAGE_BUCKET, path, image.data, image.content_type
    )
    return store.insert_application(payload)


# ============================================================
# PART 3: Marketplace items
# ============================================================

def build_marketplace_item(form: MarketplaceItemForm) -> MarketplaceItem:
    name = _required(form.name, "name", "Product name")
    category = _required(form.category, "category", "Category")
    if category not in MARKETPLACE_CATEGORIES:
        raise ValidationError("Please select a category.", field="category")
    item_type = _required(form.type, "type", "Type")
    if item_type not in PRODUCT_TYPES:
        raise ValidationError("Please select a type.", field="type")
    price = _optional_number(_required(form.price, "price", "Price"), "price", "Price")
    if price == 0:
        raise ValidationError("Price must be greater than zero.", field="price")
    description = _required(form.description, "description", "Description")
    shipping_time = (form.shipping_time or DEFAULT_SHIPPING_TIME).strip()
    if shipping_time not in SHIPPING_TIMES:
        raise ValidationError("Please select a shipping time.", field="shipping_time")

    return MarketplaceItem(
        name=name,
        category=category,
        type=item_type,
        description=description,
        price=price,
        features=split_list(form.features),
        location=(form.location or "").strip(),
        original_price=_optional_number(form.original_price, "original_price", "Original price"),
        shipping_time=shipping_time,
        artisan=(form.artisan or "").strip(),
        village=(form.village or "").strip(),
        producer=(form.producer or "").strip(),
        weight=(form.weight or "").strip(),
        status=ApplicationStatus.PENDING,
        in_stock=True,
        rating=0,
        reviews=0,
    )


def submit_marketplace_item(store: PortalStore, form: MarketplaceItemForm,
                            image: Optional[ImageUpload]) -> dict:
    """Validate, upload the product image, then insert a pending listing."""
    item = build_marketplace_item(form)
    image = validate_image(image, label="product image")

    path = f"{safe_image_name(item.name)}.{image.extension}"
    item.image_url = store.upload_image(MARKETPLACE_IMAGE_BUCKET, path, image.data, image.content_type)
    return store.insert_marketplace_item(item)
