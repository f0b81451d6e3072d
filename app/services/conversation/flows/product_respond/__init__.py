from .product_respond_flow import ProductRespondFlow

__all__ = ["ProductRespondFlow"]
