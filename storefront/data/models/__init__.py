#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order import OrderModel
from storefront.data.models.product import ProductModel
from storefront.data.models.variant import VariantModel

__all__ = ["CartModel", "CartItemModel", "OrderModel", "ProductModel", "VariantModel"]
