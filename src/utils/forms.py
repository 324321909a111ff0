# client-side form state and validation, no UI and no network here
from __future__ import annotations

import json
import math
import mimetypes
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from api.errors import ValidationFailure
from api.models import Product

MIN_PASSWORD_LENGTH = 6


def parse_price(text: str) -> float:
    """
    Parse a price entered by the user. Must be a finite, non-negative decimal.
    """
    text = (text or "").strip()
    if not text:
        raise ValidationFailure("Price is required.", field="price")
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise ValidationFailure("Price must be a valid number.", field="price") from None
    if not value.is_finite() or value < 0 or not math.isfinite(float(value)):
        raise ValidationFailure("Price must be a valid number.", field="price")
    return float(value)


@dataclass(frozen=True)
class UploadFile:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: str) -> UploadFile:
        path = os.path.expanduser(path.strip())
        if not os.path.isfile(path):
            raise ValidationFailure(f"File not found: {path}", field="files")
        with open(path, "rb") as f:
            content = f.read()
        content_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
        return cls(os.path.basename(path), content, content_type)


@dataclass(frozen=True)
class ProductSubmission:
    """
    Validated product form values, ready to be sent as multipart.
    existing_gallery is None when creating a product.
    """

    name: str
    price: float
    category: str
    description: str
    files: Tuple[UploadFile, ...] = ()
    existing_gallery: Optional[List[str]] = None

    def form_fields(self) -> List[Tuple[str, str]]:
        fields = [
            ("name", self.name),
            ("price", str(self.price)),
            ("category", self.category),
            ("description", self.description),
        ]
        if self.existing_gallery is not None:
            fields.append(("existing_gallery", json.dumps(self.existing_gallery)))
        return fields


@dataclass
class ProductDraft:
    """
    Mutable state behind the add/edit product form.

    For edits, existing_gallery holds the URLs already on the product; staged
    holds new files picked in this session. Both can be pruned by index before
    submitting. The backend merges the kept URLs with the uploaded files.
    """

    name: str = ""
    price: str = ""
    category: str = ""
    description: str = ""
    existing_gallery: Optional[List[str]] = None
    staged: List[UploadFile] = field(default_factory=list)

    @classmethod
    def from_product(cls, product: Product) -> ProductDraft:
        return cls(
            name=product.name,
            price=f"{product.price:g}",
            category=product.category,
            description=product.description,
            existing_gallery=list(product.display_gallery),
        )

    @property
    def is_edit(self) -> bool:
        return self.existing_gallery is not None

    def stage(self, upload: UploadFile) -> None:
        self.staged.append(upload)

    def remove_existing(self, index: int) -> str:
        if self.existing_gallery is None:
            raise IndexError("no existing gallery on a new product")
        return self.existing_gallery.pop(index)

    def remove_staged(self, index: int) -> UploadFile:
        return self.staged.pop(index)

    def reset(self) -> None:
        self.name = self.price = self.category = self.description = ""
        self.staged.clear()
        if self.existing_gallery is not None:
            self.existing_gallery = []

    def to_submission(self) -> ProductSubmission:
        name = self.name.strip()
        category = self.category.strip()
        if not name:
            raise ValidationFailure("Product name is required.", field="name")
        price = parse_price(self.price)
        if not category:
            raise ValidationFailure("Category is required.", field="category")
        return ProductSubmission(
            name=name,
            price=price,
            category=category,
            description=self.description,
            files=tuple(self.staged),
            existing_gallery=(
                list(self.existing_gallery) if self.existing_gallery is not None else None
            ),
        )


def build_settings_update(
    email: str,
    full_name: str,
    whatsapp_number: str,
    password: str = "",
    confirm_password: str = "",
) -> Dict[str, Any]:
    """
    Validate the settings form and return the partial profile to submit.

    Blank password fields mean "no change" and are left out of the payload.
    """
    email = (email or "").strip()
    if "@" not in email:
        raise ValidationFailure("Please enter a valid email address", field="email")

    if password and len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailure(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            field="password",
        )

    if password != confirm_password:
        raise ValidationFailure("Passwords do not match", field="confirm_password")

    update: Dict[str, Any] = {
        "email": email,
        "full_name": (full_name or "").strip(),
        "whatsapp_number": (whatsapp_number or "").strip(),
    }
    if password:
        update["password"] = password
    return update
