from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from contafricax.db import Base


class TransactionType(str, Enum):
    revenue = "REVENU"
    expense = "DEPENSE"


class TransactionStatus(str, Enum):
    pending = "EN_ATTENTE"
    validated = "VALIDEE"
    cancelled = "ANNULEE"


class ReportGroup(str, Enum):
    """Where a category's amounts land on the income statement."""

    operating = "operating"
    cost_of_sales = "cost-of-sales"
    financial = "financial"
    tax = "tax"
    non_operating = "non-operating"


class PaymentProvider(str, Enum):
    orange_money = "ORANGE_MONEY"
    mtn_mobile_money = "MTN_MOBILE_MONEY"
    wave = "WAVE"
    mpesa = "MPESA"
    moov_money = "MOOV_MONEY"
    free_money = "FREE_MONEY"


class PaymentCountry(str, Enum):
    senegal = "SENEGAL"
    cote_divoire = "COTE_DIVOIRE"
    cameroun = "CAMEROUN"
    mali = "MALI"
    burkina_faso = "BURKINA_FASO"
    benin = "BENIN"
    togo = "TOGO"
    niger = "NIGER"
    guinee = "GUINEE"
    kenya = "KENYA"
    ghana = "GHANA"
    nigeria = "NIGERIA"


class PaymentStatus(str, Enum):
    pending = "PENDING"
    initiated = "INITIATED"
    processing = "PROCESSING"
    completed = "COMPLETED"
    failed = "FAILED"
    cancelled = "CANCELLED"
    refunded = "REFUNDED"


class PaymentDirection(str, Enum):
    inbound = "INBOUND"
    outbound = "OUTBOUND"


class TaxType(str, Enum):
    vat = "VAT"
    corporate_income = "CORPORATE_INCOME"
    withholding = "WITHHOLDING"
    payroll = "PAYROLL"
    property = "PROPERTY"
    business_license = "BUSINESS_LICENSE"
    customs_duty = "CUSTOMS_DUTY"
    excise_duty = "EXCISE_DUTY"
    stamp_duty = "STAMP_DUTY"
    dividend = "DIVIDEND"
    capital_gains = "CAPITAL_GAINS"
    other = "OTHER"


class FilingFrequency(str, Enum):
    monthly = "MONTHLY"
    quarterly = "QUARTERLY"
    semi_annual = "SEMI_ANNUAL"
    annual = "ANNUAL"


MONEY = Numeric(20, 8)


transaction_tags = Table(
    "transaction_tags",
    Base.metadata,
    Column(
        "transaction_id",
        Integer,
        ForeignKey("transactions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True
    ),
)


class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    roles: Mapped[list["UserRole"]] = relationship(
        "UserRole", back_populates="user", cascade="all, delete-orphan"
    )

    @validates("email")
    def _normalize_email(self, key, value):
        return (value or "").strip().lower()


class Role(Base):
    __tablename__ = "roles"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False, index=True
    )


class UserRole(Base):
    __tablename__ = "user_roles"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    role_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False
    )
    __table_args__ = (UniqueConstraint("user_id", "role_id", name="uq_user_role"),)

    user: Mapped["User"] = relationship("User", back_populates="roles")
    role: Mapped["Role"] = relationship("Role")


class Category(Base):
    __tablename__ = "categories"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    color: Mapped[Optional[str]] = mapped_column(String(16))
    icon: Mapped[Optional[str]] = mapped_column(String(64))
    report_group: Mapped[str] = mapped_column(
        String(32), nullable=False, default=ReportGroup.operating.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    __table_args__ = (UniqueConstraint("name", "type", name="uq_category_name_type"),)


class Tag(Base):
    __tablename__ = "tags"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    color: Mapped[Optional[str]] = mapped_column(String(16))


class Transaction(Base):
    __tablename__ = "transactions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=TransactionStatus.validated.value,
        index=True,
    )
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False
    )
    reference: Mapped[Optional[str]] = mapped_column(String(128))
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="XOF")
    notes: Mapped[Optional[str]] = mapped_column(Text)
    client_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("clients.id", ondelete="SET NULL"), index=True
    )
    supplier_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("suppliers.id", ondelete="SET NULL"), index=True
    )
    created_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    category: Mapped["Category"] = relationship("Category")
    tags: Mapped[list["Tag"]] = relationship(
        "Tag", secondary=transaction_tags, order_by="Tag.name"
    )
    attachments: Mapped[list["Attachment"]] = relationship(
        "Attachment",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="Attachment.id",
    )

    @validates("currency")
    def _upper_currency(self, key, value):
        return (value or "").strip().upper()


class Attachment(Base):
    __tablename__ = "attachments"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    transaction_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_type: Mapped[str] = mapped_column(String(128), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    storage_path: Mapped[str] = mapped_column(String(512), nullable=False)
    upload_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    transaction: Mapped["Transaction"] = relationship(
        "Transaction", back_populates="attachments"
    )


class Client(Base):
    __tablename__ = "clients"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    phone: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    address: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    city: Mapped[Optional[str]] = mapped_column(String(128))
    postal_code: Mapped[Optional[str]] = mapped_column(String(32))
    country: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    tax_id: Mapped[Optional[str]] = mapped_column(String(64))
    website: Mapped[Optional[str]] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="actif")
    total_sales: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    outstanding_balance: Mapped[Decimal] = mapped_column(
        MONEY, nullable=False, default=0
    )
    last_order_date: Mapped[Optional[date]] = mapped_column(Date)
    # [{name, role, email, phone, is_primary}]
    contacts: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    notes: Mapped[list["ClientNote"]] = relationship(
        "ClientNote", cascade="all, delete-orphan", order_by="ClientNote.id"
    )


class ClientNote(Base):
    __tablename__ = "client_notes"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class Supplier(Base):
    __tablename__ = "suppliers"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    phone: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    address: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    city: Mapped[Optional[str]] = mapped_column(String(128))
    postal_code: Mapped[Optional[str]] = mapped_column(String(32))
    country: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    tax_id: Mapped[Optional[str]] = mapped_column(String(64))
    website: Mapped[Optional[str]] = mapped_column(String(255))
    category: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="actif")
    total_purchases: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    outstanding_payable: Mapped[Decimal] = mapped_column(
        MONEY, nullable=False, default=0
    )
    last_order_date: Mapped[Optional[date]] = mapped_column(Date)
    contacts: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    notes: Mapped[list["SupplierNote"]] = relationship(
        "SupplierNote", cascade="all, delete-orphan", order_by="SupplierNote.id"
    )


class SupplierNote(Base):
    __tablename__ = "supplier_notes"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    supplier_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class AppSettings(Base):
    """Organisation-wide preferences; a single row with id=1."""

    __tablename__ = "app_settings"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    language: Mapped[str] = mapped_column(String(8), nullable=False, default="fr")
    date_format: Mapped[str] = mapped_column(
        String(32), nullable=False, default="DD/MM/YYYY"
    )
    primary_currency: Mapped[str] = mapped_column(
        String(8), nullable=False, default="XOF"
    )
    secondary_currencies: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list
    )
    show_currency_symbol: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    share_capital: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    vat_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("18")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class Payment(Base):
    """A mobile-money collection or payout and the provider's view of it."""

    __tablename__ = "payments"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    reference: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="XOF")
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=PaymentStatus.initiated.value, index=True
    )
    direction: Mapped[str] = mapped_column(String(16), nullable=False)
    provider: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    phone_number: Mapped[str] = mapped_column(String(32), nullable=False)
    country: Mapped[str] = mapped_column(String(32), nullable=False)
    provider_transaction_id: Mapped[Optional[str]] = mapped_column(String(64))
    provider_reference: Mapped[Optional[str]] = mapped_column(String(128))
    redirect_url: Mapped[Optional[str]] = mapped_column(String(512))
    refunded_amount: Mapped[Optional[Decimal]] = mapped_column(MONEY)
    failure_reason: Mapped[Optional[str]] = mapped_column(String(255))
    # free-form caller metadata ("metadata" is reserved on declarative classes)
    extra: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    client_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("clients.id", ondelete="SET NULL"), index=True
    )
    supplier_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("suppliers.id", ondelete="SET NULL"), index=True
    )
    created_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    @validates("currency")
    def _upper_currency(self, key, value):
        return (value or "").strip().upper()


class TaxRule(Base):
    """A tax the organisation files: its rate and how often it is declared."""

    __tablename__ = "tax_rules"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tax_type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=0)
    filing_frequency: Mapped[str] = mapped_column(
        String(16), nullable=False, default=FilingFrequency.monthly.value
    )
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    __table_args__ = (UniqueConstraint("name", name="uq_tax_rule_name"),)
