from order.order import Order

__all__ = ["Order"]
