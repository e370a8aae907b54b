"""
Database models for the pizza sales dataset.
"""
from sqlalchemy import Column, Integer, String, Float, Date, Time, ForeignKey
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Order(Base):
    """One customer order."""
    __tablename__ = 'orders'

    order_id = Column(Integer, primary_key=True)
    order_date = Column(Date, nullable=False)
    order_time = Column(Time, nullable=False)


class OrderDetail(Base):
    """One line of an order: a pizza and how many of it."""
    __tablename__ = 'order_details'

    order_detail_id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey('orders.order_id'), nullable=False)
    pizza_id = Column(String(50), ForeignKey('pizzas.pizza_id'), nullable=False)
    quantity = Column(Integer, nullable=False)


class Pizza(Base):
    """A pizza on the menu in one size, with its price."""
    __tablename__ = 'pizzas'

    pizza_id = Column(String(50), primary_key=True)
    name = Column(String(100), nullable=False)
    category_id = Column(Integer, ForeignKey('pizza_categories.category_id'), nullable=False)
    size = Column(String(5), nullable=False)
    price = Column(Float, nullable=False)


class PizzaCategory(Base):
    """Menu category (Classic, Veggie, ...)."""
    __tablename__ = 'pizza_categories'

    category_id = Column(Integer, primary_key=True)
    name = Column(String(50), nullable=False)
