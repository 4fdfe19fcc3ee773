"""
Module `ingestion.eemanager` provides the EarthEngineManager class to
encapsulate Google Earth Engine initialization, retries, and image collection retrieval.
"""

import os
import json
import time
from typing import Optional, Any

from google.oauth2.credentials import Credentials

import ee
from ee import EEException

from geet.core.logger import Logger
from .sensorspec import SensorSpec, resolve_sensor


class EarthEngineManager:
    """
    Manages interaction with Google Earth Engine: initialization, retries
    and collection retrieval.
    """

    def __init__(
        self,
        credential_path: Optional[str] = None,
        project: Optional[str] = None,
        logger=None,
    ):
        self.credential_path = credential_path
        # Allow non-interactive auth using a refresh token passed via env.
        self.token_env = os.getenv("EARTHENGINE_TOKEN")
        self.project = project or os.getenv("GEET_EE_PROJECT")
        self.logger = logger or Logger.get_logger(__name__)
        self._initialized = False

    def _token_credentials(self) -> Any:
        creds_data = None
        if os.path.exists(self.token_env):
            with open(self.token_env, "r", encoding="utf-8") as fh:
                creds_data = json.load(fh)
        else:
            try:
                creds_data = json.loads(self.token_env)
            except json.JSONDecodeError:
                self.logger.warning("EARTHENGINE_TOKEN is neither a file nor JSON")
        if not creds_data or "refresh_token" not in creds_data:
            return None
        return Credentials(
            None,
            refresh_token=creds_data.get("refresh_token"),
            token_uri=creds_data.get("token_uri", ee.oauth.TOKEN_URI),
            client_id=creds_data.get("client_id", ee.oauth.CLIENT_ID),
            client_secret=creds_data.get("client_secret", ee.oauth.CLIENT_SECRET),
            scopes=creds_data.get("scopes", ee.oauth.SCOPES),
            quota_project_id=creds_data.get("project"),
        )

    def initialize(self, force: bool = False) -> None:
        """
        Authenticate & initialize Earth Engine.
        If a service-account JSON path is given, use it; otherwise try the
        EARTHENGINE_TOKEN refresh token, then the default credentials.
        """
        if self._initialized and not force:
            return
        project = self.project
        token = self._token_credentials() if self.token_env else None
        try:
            if self.credential_path:
                sa_credentials: Any = ee.ServiceAccountCredentials(
                    None, self.credential_path  # type: ignore[arg-type]
                )
                ee.Initialize(sa_credentials, project=project)
            elif token is not None:
                ee.Initialize(token, project=project)
            else:
                ee.Initialize(project=project)
        except EEException:
            self.logger.info("Earth Engine credentials missing; authenticating")
            ee.Authenticate()
            ee.Initialize(project=project)
        self._initialized = True
        self.logger.debug("Earth Engine initialized (project=%s)", project)

    def safe_get_info(self, obj, max_retries: int = 3):
        """
        Wrapper for obj.getInfo() that:
          - retries transient errors
          - on PERMISSION_DENIED, forces a re-auth + re-init and retries once
          - raises after max_retries
        """
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        for attempt in range(1, max_retries + 1):
            try:
                return obj.getInfo()
            except EEException as e:
                msg = str(e)
                if "PERMISSION_DENIED" in msg:
                    self.logger.error(
                        "Earth Engine permission denied. Re-authenticating..."
                    )
                    ee.Authenticate()
                    self.initialize(force=True)
                    if attempt == 1 and attempt < max_retries:
                        continue
                if attempt < max_retries:
                    backoff = 2 ** (attempt - 1)
                    self.logger.warning(
                        "Transient EE error (attempt %d/%d): %s - retrying in %ds",
                        attempt,
                        max_retries,
                        msg,
                        backoff,
                    )
                    time.sleep(backoff)
                    continue
                self.logger.error(
                    "Failed to getInfo() after %d attempts: %s", attempt, msg
                )
                raise
        return None

    def get_image_collection(
        self,
        collection_id: str,
        start_date: str,
        end_date: str,
        region=None,
        mask_clouds: bool = False,
        sensor: SensorSpec | str | None = None,
    ) -> ee.ImageCollection:
        """
        Return an EE ImageCollection filtered by date and (optionally) region,
        with optional cloud masking using *sensor*'s mask.
        """
        coll = ee.ImageCollection(collection_id).filterDate(start_date, end_date)
        if region is not None:
            coll = coll.filterBounds(region)
        if mask_clouds:
            if sensor is None:
                raise ValueError("A sensor is required to mask clouds")
            coll = coll.map(resolve_sensor(sensor).cloud_mask)
        return coll


# Convenience singleton
ee_manager = EarthEngineManager()
