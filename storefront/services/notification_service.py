# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Serwis do wysyłania powiadomień.
    Używa Celery do asynchronicznego przetwarzania, zawsze po commicie.
    """

    @staticmethod
    def send_order_notification(user_id: int, order_id: int):
        """
        Wysyła powiadomienie o złożeniu zamówienia.
        Błąd brokera nie cofa zamówienia, tylko trafia do logów.
        """
        try:
            send_order_notification_task.delay(user_id, order_id)
        except Exception as e:
            logger.warning("Nie udalo sie zakolejkowac powiadomienia", user_id=user_id, order_id=order_id, error=repr(e))
            return False
        return True


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_id: int):
    """
    Celery task - wysylka maila to zewnetrzny kolaborator, tutaj tylko log.
    """
    logger.info("[NOTIFICATION] Order placed", user_id=user_id, order_id=order_id, status="PENDING")

    return {"user_id": user_id, "order_id": order_id, "status": "sent"}
