from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, nullable=False, index=True)
    stripe_id = Column(String(50), nullable=False)

    subscriptions = relationship("Subscription", back_populates="user")


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    stripe_sub_id = Column(String(50), nullable=False)
    plan_id = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False)
    start_date = Column(DateTime, nullable=False)
    cancel_date = Column(DateTime, nullable=True)
    next_billing_day = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="subscriptions")
    payments = relationship("Payment", back_populates="subscription")


# Declared for schema parity; nothing writes payments yet.
class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subscription_id = Column(Integer, ForeignKey("subscriptions.id"), nullable=False)
    amount = Column(Numeric(precision=10, scale=2), nullable=False)
    status = Column(String(20), nullable=False)
    payment_date = Column(DateTime, nullable=False)
    invoice_url = Column(String(255), nullable=True)

    subscription = relationship("Subscription", back_populates="payments")
