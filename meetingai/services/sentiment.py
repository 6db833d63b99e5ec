import logging

import requests

from ..errors import ProviderError
from ..utils.retry import with_retry

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "nlptown/bert-base-multilingual-uncased-sentiment"


def score_label(score):
    if score >= 0.5:
        return "very_positive"
    if score >= 0.1:
        return "positive"
    if score >= -0.1:
        return "neutral"
    if score >= -0.5:
        return "negative"
    return "very_negative"


NEUTRAL = {"score": 0.0, "magnitude": 0.0, "label": "neutral"}


class SentimentClient:
    """HuggingFace inference API; star ratings folded into a score in [-1, 1]."""

    def __init__(self, api_key, model=DEFAULT_MODEL, session=None, timeout=30, retry_options=None):
        self.api_key = api_key
        self.url = f"https://api-inference.huggingface.co/models/{model}"
        self.session = session or requests.Session()
        self.timeout = timeout
        self.retry_options = retry_options or {}

    def _infer(self, text):
        def call():
            r = self.session.post(self.url, headers={"Authorization": f"Bearer {self.api_key}"},
                                  json={"inputs": text[:2000]}, timeout=self.timeout)
            if r.status_code >= 400:
                raise ProviderError(f"HuggingFace error ({r.status_code}): {r.text[:300]}")
            return r.json()

        data = with_retry(call, **self.retry_options)
        return data[0] if data and isinstance(data[0], list) else data

    def score(self, text):
        """Sentiment of ``text``; neutral when the model is unreachable."""
        try:
            labels = self._infer(text) or []
            weighted = sum(int(str(d["label"]).split(" ")[0]) * float(d["score"]) for d in labels)
        except Exception:
            logger.warning('Sentiment analysis failed, scoring as neutral', exc_info=True)
            return dict(NEUTRAL)
        normalized = (weighted - 3) / 2
        return {"score": normalized, "magnitude": abs(normalized), "label": score_label(normalized)}
