# storefront/api/deps.py
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.services.cart_service import CartService
from storefront.services.checkout_service import CheckoutService
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService, Requester
from storefront.services.recommendation_client import RecommendationClient

_lock_service: LockService | None = None


def get_lock_service() -> LockService:
    # jeden klient redis (pula polaczen) na proces
    global _lock_service
    if _lock_service is None:
        _lock_service = LockService()
    return _lock_service


def get_recommendation_client() -> RecommendationClient:
    return RecommendationClient()


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_requester(
    x_user_id: int | None = Header(None),
    x_user_admin: bool = Header(False),
) -> Requester:
    """
    Tozsamosc przychodzi od zewnetrznego auth (gateway weryfikuje token
    i przekazuje naglowki X-User-Id / X-User-Admin).
    """
    if x_user_id is None or x_user_id <= 0:
        raise HTTPException(status_code=401, detail={"error": "Unauthorized", "message": "Missing identity"})
    return Requester(user_id=x_user_id, is_admin=x_user_admin)


def require_admin(requester: Requester = Depends(get_requester)) -> Requester:
    if not requester.is_admin:
        raise HTTPException(status_code=403, detail={"error": "Forbidden", "message": "Admin access required"})
    return requester


def get_cart_service(
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
    recommendation_client: RecommendationClient = Depends(get_recommendation_client),
) -> CartService:
    return CartService(
        db=db,
        lock_service=lock_service,
        recommendation_client=recommendation_client,
    )


def get_checkout_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
) -> CheckoutService:
    return CheckoutService(db, notification_service=notification_service)


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    return OrderService(db)
