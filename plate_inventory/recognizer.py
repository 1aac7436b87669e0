# plate_inventory/recognizer.py

import logging
from dataclasses import dataclass
from typing import Optional, Union

import requests

from .config import PLATE_RECOGNIZER_TOKEN, PLATE_RECOGNIZER_URL, RECOGNIZER_TIMEOUT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Detected:
    plate: str


@dataclass(frozen=True)
class NotDetected:
    pass


@dataclass(frozen=True)
class ServiceError:
    # "network", "auth", "http" or "response", followed by details
    reason: str


RecognitionResult = Union[Detected, NotDetected, ServiceError]


class PlateRecognizerClient:
    """
    Client for the external plate reader API.

    The image is posted as multipart field `upload` with an
    `Authorization: Token <token>` header. The first entry of the `results`
    array wins and its `plate` text is upper-cased.
    """

    def __init__(
        self,
        api_url: str = PLATE_RECOGNIZER_URL,
        token: Optional[str] = PLATE_RECOGNIZER_TOKEN,
        timeout: float = RECOGNIZER_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def recognize(self, image_bytes: bytes, filename: str = "car_plate.jpg") -> RecognitionResult:
        if not self.token:
            logger.error("Plate recognizer token not configured")
            return ServiceError("auth: recognizer token not configured")

        files = {"upload": (filename, image_bytes, "image/jpeg")}
        headers = {"Authorization": f"Token {self.token}"}

        try:
            response = self.session.post(self.api_url, files=files, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Error recognizing plate: {e}")
            return ServiceError(f"network: {e}")

        if response.status_code in (401, 403):
            logger.error(f"Plate recognizer rejected credentials: {response.status_code}")
            return ServiceError(f"auth: HTTP {response.status_code}")
        if not response.ok:
            logger.error(f"Plate recognizer returned HTTP {response.status_code}")
            return ServiceError(f"http: HTTP {response.status_code}")

        try:
            results = response.json().get("results") or []
            if not results:
                logger.warning("Plate recognizer returned no candidates")
                return NotDetected()
            plate = results[0]["plate"]
        except (ValueError, AttributeError, KeyError, TypeError) as e:
            logger.error(f"Unexpected plate recognizer response: {e}")
            return ServiceError(f"response: {e}")

        if not plate:
            return NotDetected()
        return Detected(str(plate).upper())
