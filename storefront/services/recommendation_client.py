# storefront/services/recommendation_client.py
import requests

from storefront.utils.retry import http_retry
from storefront.utils.settings import RECOMMENDER_URL, RECOMMENDER_TIMEOUT_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class RecommendationClient:
    """
    Zewnetrzny rekomender (LLM) - dla nas to czarna skrzynka:
    snapshot koszyka + katalogu na wejsciu, lista {product_id, reason} na wyjsciu.
    """

    def __init__(self, base_url: str | None = None, timeout: float = RECOMMENDER_TIMEOUT_SECONDS):
        self.base_url = (RECOMMENDER_URL if base_url is None else base_url).rstrip("/")
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    @http_retry()
    def recommend(self, snapshot: dict) -> list[dict]:
        url = f"{self.base_url}/recommendations"
        logger.info("RecommendationClient POST", url=url)

        resp = requests.post(url, json=snapshot, timeout=self.timeout)
        resp.raise_for_status()

        payload = resp.json()
        recommended = payload.get("recommended") if isinstance(payload, dict) else None
        if not isinstance(recommended, list):
            logger.warning("Rekomender zwrocil odpowiedz bez listy 'recommended'")
            return []
        return [r for r in recommended if isinstance(r, dict)]
