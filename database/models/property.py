import uuid
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import Column, Text, TIMESTAMP, ForeignKey, Boolean, Integer, Numeric, Uuid, Index
from sqlalchemy.orm import relationship

from core.enums import ListingStatus
from core.exceptions import ValidationException
from core.scorer.models import to_decimal
from core.utils import utcnow
from events.models import PropertyCreated

from .base import Base, DomainEventsMixin, JSONType, enum_column_type

MAX_PHOTOS = 50


def _clean_features(features: Optional[Iterable[str]]) -> List[str]:
    return [f.strip() for f in (features or []) if f and f.strip()]


class Property(DomainEventsMixin, Base):
    """
    A listing that can be matched to housing searches.

    Never hard-deleted: soft_delete() sets is_deleted and every read site
    filters on it.
    """
    __tablename__ = 'property'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    street = Column(Text, nullable=False)
    city = Column(Text, nullable=False)
    state = Column(Text, nullable=False, default='NJ')
    zip_code = Column(Text, nullable=True)

    price = Column(Numeric(12, 2), nullable=False)
    bedrooms = Column(Integer, nullable=False)
    bathrooms = Column(Numeric(4, 1), nullable=False)
    square_feet = Column(Integer, nullable=True)
    lot_size = Column(Numeric(10, 2), nullable=True)
    year_built = Column(Integer, nullable=True)
    annual_taxes = Column(Numeric(10, 2), nullable=True)

    features = Column(JSONType, nullable=False, default=list)
    mls_number = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    status = Column(enum_column_type(ListingStatus), nullable=False, default=ListingStatus.ACTIVE)
    is_deleted = Column(Boolean, nullable=False, default=False)

    created_by = Column(Uuid, nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    modified_by = Column(Uuid, nullable=True)
    modified_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    photos = relationship(
        "PropertyPhoto",
        back_populates="property",
        cascade="all, delete-orphan",
        order_by="PropertyPhoto.display_order",
    )
    matches = relationship("PropertyMatch", back_populates="property")

    __table_args__ = (
        Index('idx_property_status', 'status', 'is_deleted'),
        Index('idx_property_city', 'city'),
    )

    @staticmethod
    def _validated_listing(
        street: str, city: str, price: Any, bedrooms: int, bathrooms: Any
    ) -> Dict[str, Any]:
        errors = []
        if not street or not street.strip():
            errors.append("Street is required")
        if not city or not city.strip():
            errors.append("City is required")

        price = to_decimal(price, "Price")
        if price is None or price <= 0:
            errors.append("Price must be greater than zero")
        if bedrooms is None or bedrooms < 0:
            errors.append("Bedrooms cannot be negative")

        bathrooms = to_decimal(bathrooms, "Bathrooms")
        if bathrooms is None or bathrooms < 0:
            errors.append("Bathrooms cannot be negative")

        if errors:
            raise ValidationException.from_errors(errors)
        return {
            'street': street.strip(),
            'city': city.strip(),
            'price': price,
            'bedrooms': bedrooms,
            'bathrooms': bathrooms,
        }

    @classmethod
    def create(
        cls,
        street: str,
        city: str,
        price: Any,
        bedrooms: int,
        bathrooms: Any,
        created_by: uuid.UUID,
        state: str = 'NJ',
        zip_code: Optional[str] = None,
        square_feet: Optional[int] = None,
        lot_size: Optional[Any] = None,
        year_built: Optional[int] = None,
        annual_taxes: Optional[Any] = None,
        features: Optional[Iterable[str]] = None,
        mls_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> "Property":
        listing = cls._validated_listing(street, city, price, bedrooms, bathrooms)
        now = utcnow()
        prop = cls(
            id=uuid.uuid4(),
            state=state,
            zip_code=zip_code,
            square_feet=square_feet,
            lot_size=to_decimal(lot_size, "Lot size"),
            year_built=year_built,
            annual_taxes=to_decimal(annual_taxes, "Annual taxes"),
            features=_clean_features(features),
            mls_number=mls_number,
            notes=notes,
            photos=[],
            status=ListingStatus.ACTIVE,
            is_deleted=False,
            created_by=created_by,
            created_at=now,
            modified_by=created_by,
            modified_at=now,
            **listing,
        )
        prop.record_event(PropertyCreated(property_id=prop.id, created_by=created_by))
        return prop

    def _touch(self, user_id: Optional[uuid.UUID]) -> None:
        self.modified_by = user_id
        self.modified_at = utcnow()

    def update(
        self,
        street: str,
        city: str,
        price: Any,
        bedrooms: int,
        bathrooms: Any,
        modified_by: uuid.UUID,
        state: str = 'NJ',
        zip_code: Optional[str] = None,
        square_feet: Optional[int] = None,
        lot_size: Optional[Any] = None,
        year_built: Optional[int] = None,
        annual_taxes: Optional[Any] = None,
        features: Optional[Iterable[str]] = None,
        mls_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> None:
        listing = self._validated_listing(street, city, price, bedrooms, bathrooms)
        for key, value in listing.items():
            setattr(self, key, value)
        self.state = state
        self.zip_code = zip_code
        self.square_feet = square_feet
        self.lot_size = to_decimal(lot_size, "Lot size")
        self.year_built = year_built
        self.annual_taxes = to_decimal(annual_taxes, "Annual taxes")
        self.features = _clean_features(features)
        self.mls_number = mls_number
        self.notes = notes
        self._touch(modified_by)

    def update_status(self, status: ListingStatus, modified_by: uuid.UUID) -> None:
        self.status = status
        self._touch(modified_by)

    def soft_delete(self, deleted_by: uuid.UUID) -> None:
        self.is_deleted = True
        self._touch(deleted_by)

    @property
    def is_active_listing(self) -> bool:
        return self.status == ListingStatus.ACTIVE and not self.is_deleted

    @property
    def address_line(self) -> str:
        return f"{self.street}, {self.city}, {self.state} {self.zip_code or ''}".strip()

    # Photos

    @property
    def primary_photo(self) -> Optional["PropertyPhoto"]:
        photos = list(self.photos)
        return next((p for p in photos if p.is_primary), photos[0] if photos else None)

    def add_photo(
        self,
        url: str,
        modified_by: uuid.UUID,
        description: Optional[str] = None,
        is_primary: bool = False,
    ) -> "PropertyPhoto":
        if not url or not url.strip():
            raise ValidationException("Photo URL is required")
        if len(self.photos) >= MAX_PHOTOS:
            raise ValidationException(f"Maximum {MAX_PHOTOS} photos allowed per property")

        display_order = max((p.display_order for p in self.photos), default=-1) + 1
        photo = PropertyPhoto(
            id=uuid.uuid4(),
            url=url.strip(),
            description=description,
            display_order=display_order,
            is_primary=False,
            uploaded_at=utcnow(),
        )
        self.photos.append(photo)

        # First photo is always primary
        if is_primary or len(self.photos) == 1:
            self._mark_primary(photo)
        self._touch(modified_by)
        return photo

    def set_primary_photo(self, photo_id: uuid.UUID, modified_by: uuid.UUID) -> None:
        photo = next((p for p in self.photos if p.id == photo_id), None)
        if photo is None:
            raise ValidationException(f"Photo with ID {photo_id} not found on this property")
        self._mark_primary(photo)
        self._touch(modified_by)

    def remove_photo(self, photo_id: uuid.UUID, modified_by: uuid.UUID) -> bool:
        photo = next((p for p in self.photos if p.id == photo_id), None)
        if photo is None:
            return False

        was_primary = photo.is_primary
        self.photos.remove(photo)
        if was_primary and self.photos:
            self._mark_primary(self.photos[0])
        self._touch(modified_by)
        return True

    def _mark_primary(self, photo: "PropertyPhoto") -> None:
        for p in self.photos:
            p.is_primary = p is photo

    def estimate_monthly_payment(
        self,
        down_payment: Any,
        annual_interest_rate: Any,
        loan_term_years: int = 30,
    ) -> Decimal:
        """
        Principal and interest plus monthly taxes and ~0.35%/yr insurance.

        Rate is in percent (6.5 means 6.5%). Returns 0 when the down payment
        covers the price.
        """
        price = to_decimal(self.price, "Price")
        loan = price - to_decimal(down_payment, "Down payment")
        if loan <= 0:
            return Decimal("0")

        monthly_rate = to_decimal(annual_interest_rate, "Interest rate") / 100 / 12
        payments = loan_term_years * 12

        if monthly_rate == 0:
            principal_and_interest = loan / payments
        else:
            growth = (1 + monthly_rate) ** payments
            principal_and_interest = loan * monthly_rate * growth / (growth - 1)

        taxes = to_decimal(self.annual_taxes or 0, "Annual taxes") / 12
        insurance = price * Decimal("0.0035") / 12
        return (principal_and_interest + taxes + insurance).quantize(Decimal("0.01"))


class PropertyPhoto(Base):
    __tablename__ = 'property_photo'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    property_id = Column(Uuid, ForeignKey('property.id', ondelete='CASCADE'), nullable=False)
    url = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    display_order = Column(Integer, nullable=False, default=0)
    is_primary = Column(Boolean, nullable=False, default=False)
    uploaded_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    property = relationship("Property", back_populates="photos")
