# [BEGIN FILE] backend/billboard_rental/models/__init__.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Date,
    ForeignKey,
    UniqueConstraint,
    Index,
    CheckConstraint,
    func,
    Numeric,
    Boolean,
)
from sqlalchemy.orm import declarative_base, relationship
from ..core.config import engine

Base = declarative_base()

# =========================
# Inventory
# =========================
class Billboard(Base):
    __tablename__ = "billboards"

    id = Column("ID", Integer, primary_key=True, index=True)
    name = Column("Billboard_Name", String(255), nullable=True)
    city = Column("City", String(100), nullable=True)
    size = Column("Size", String(50), nullable=True)
    level = Column("Level", String(50), nullable=True)
    faces_count = Column("Faces_Count", Integer, nullable=True)
    price = Column(Numeric(18, 2), nullable=False, default=0)  # own monthly price
    status = Column("Status", String(50), nullable=True)

    # current booking (denormalized from contracts)
    contract_number = Column("Contract_Number", String(50), nullable=True, index=True)
    customer_name = Column("Customer_Name", String(255), nullable=True)
    rent_start_date = Column("Rent_Start_Date", Date, nullable=True)
    rent_end_date = Column("Rent_End_Date", Date, nullable=True)

    # partnership
    is_partnership = Column(Boolean, nullable=False, default=False)
    partner_companies = Column(Text, nullable=True)  # comma separated
    capital = Column(Numeric(18, 2), nullable=False, default=0)
    capital_remaining = Column(Numeric(18, 2), nullable=True)

    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    transactions = relationship("SharedTransaction", back_populates="billboard", lazy="selectin")

    __table_args__ = (
        CheckConstraint("capital_remaining IS NULL OR capital_remaining >= 0", name="ck_billboard_capital_remaining"),
        Index("ix_billboards_partnership", "is_partnership"),
    )

    def as_row(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "size": self.size,
            "level": self.level,
            "faces_count": self.faces_count,
            "price": self.price,
            "status": self.status,
            "contract_number": self.contract_number,
            "customer_name": self.customer_name,
            "rent_start_date": self.rent_start_date,
            "rent_end_date": self.rent_end_date,
            "is_partnership": self.is_partnership,
            "partner_companies": self.partner_companies,
            "capital": self.capital,
            "capital_remaining": self.capital_remaining,
        }


class SizePrice(Base):
    """Installation price per board size (full two-face job)."""

    __tablename__ = "sizes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False, unique=True)
    installation_price = Column(Numeric(18, 2), nullable=True)


# =========================
# Contracts
# =========================
class Contract(Base):
    __tablename__ = "contracts"

    id = Column(Integer, primary_key=True, index=True)
    contract_number = Column("Contract_Number", String(50), nullable=False, unique=True)

    customer_name = Column("Customer Name", String(255), nullable=True)
    customer_category = Column(String(50), nullable=False, default="عادي")
    ad_type = Column("Ad Type", String(100), nullable=True)
    start_date = Column("Contract Date", Date, nullable=True)
    end_date = Column("End Date", Date, nullable=True, index=True)

    rent_cost = Column(Numeric(18, 2), nullable=False, default=0)
    discount_type = Column(String(10), nullable=False, default="percent")
    discount_value = Column(Numeric(18, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(18, 2), nullable=False, default=0)
    installation_cost = Column(Numeric(18, 2), nullable=False, default=0)
    print_cost = Column(Numeric(18, 2), nullable=False, default=0)
    total_cost = Column("Total", Numeric(18, 2), nullable=False, default=0)  # final total
    rental_cost_only = Column(Numeric(18, 2), nullable=False, default=0)
    operating_fee_rate = Column(Numeric(9, 4), nullable=True)
    operating_fee = Column(Numeric(18, 2), nullable=False, default=0)

    billboard_ids = Column(Text, nullable=True)       # comma separated
    installments_data = Column(Text, nullable=True)   # JSON list

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("discount_type IN ('percent','amount')", name="ck_contract_discount_type"),
    )


# =========================
# Pricing
# =========================
class PricingEntry(Base):
    __tablename__ = "pricing"

    id = Column(Integer, primary_key=True, index=True)
    size = Column(String(50), nullable=False)
    billboard_level = Column(String(50), nullable=False)
    customer_category = Column(String(50), nullable=False)

    one_month = Column(Numeric(18, 2), nullable=True)
    two_months = Column("2_months", Numeric(18, 2), nullable=True)
    three_months = Column("3_months", Numeric(18, 2), nullable=True)
    six_months = Column("6_months", Numeric(18, 2), nullable=True)
    full_year = Column(Numeric(18, 2), nullable=True)
    one_day = Column(Numeric(18, 2), nullable=True)

    __table_args__ = (
        UniqueConstraint("size", "billboard_level", "customer_category", name="uix_pricing_triple"),
    )

    def as_row(self) -> dict:
        return {
            "size": self.size,
            "billboard_level": self.billboard_level,
            "customer_category": self.customer_category,
            "one_month": self.one_month,
            "2_months": self.two_months,
            "3_months": self.three_months,
            "6_months": self.six_months,
            "full_year": self.full_year,
            "one_day": self.one_day,
        }


class PricingCategory(Base):
    __tablename__ = "pricing_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False, unique=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


# =========================
# Partnership ledger (append-only)
# =========================
class SharedTransaction(Base):
    __tablename__ = "shared_transactions"

    id = Column(Integer, primary_key=True, index=True)
    billboard_id = Column(Integer, ForeignKey("billboards.ID"), nullable=False)
    beneficiary = Column(String(255), nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    type = Column(String(30), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    billboard = relationship("Billboard", back_populates="transactions", lazy="selectin")

    __table_args__ = (
        CheckConstraint("type IN ('rental_income','capital_deduction')", name="ck_shared_tx_type"),
        Index("ix_shared_tx_billboard", "billboard_id"),
    )


# =========================
# Create all (idempotent)
# =========================
Base.metadata.create_all(bind=engine)
# [END FILE] backend/billboard_rental/models/__init__.py
