#Purpose: The OSRM "adapter/client".
#Sole responsibility: talk to OSRM via HTTP and return normalized outputs.
#Encapsulates OSRM-specific details:
#coordinate formatting (lon,lat)
#URL construction (/route)
#timeouts and error handling
#parsing response JSON into your internal shape
#It should not contain caching, scheduling rules or cost.


from dotenv import load_dotenv
import os
from typing import List, Dict, Optional
import logging
import requests

from .geo import LatLon

# Read OSRM base URL from environment
# Example in .env:
# BASE_URL=http://router.project-osrm.org
load_dotenv()
BASE_URL = os.getenv("BASE_URL")

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """The routing provider failed or returned something we cannot use."""
    pass


class OSRMClient:
    """
    OSRM Adapter / Client

    Sole responsibility:
    - Talk to OSRM via HTTP
    - Convert internal (lat, lon) → OSRM (lon,lat)
    - Return normalized outputs (meters / seconds, as OSRM reports them)

    """
    def __init__(self, base_url: Optional[str] = None, profile: str = "driving", timeout: int = 5, session=None):
        self.base_url = (base_url or BASE_URL or "").rstrip("/")
        self.timeout = timeout #the time to wait for a response from OSRM before giving up
        self.profile = profile #the mode of transportation (driving, walking, cycling)
        self.session = session or requests.Session()

        if not self.base_url:
            raise ValueError("OSRM base URL not set. Please set BASE_URL in the .env file.")

    #----------------
    # Internal helpers
    #----------------
    def format_coordinates(self, coords: List[LatLon]) -> str:
        """Convert list of (lat, lon) to OSRM format 'lon,lat;lon,lat;...'"""
        return ';'.join([f"{lon},{lat}" for lat, lon in coords])

    #----------------
    # Public methods
    #----------------
    def compute_route(self, coordinates: List[LatLon]) -> Dict[str, float]:
        """
            calls the OSRM /route endpoint with the given coordinates and
            returns a dict with distance and duration of the first route

            Returns:
                {
                    "distance": float, # in meters
                    "duration": float, # in seconds
                }

            Raises:
                ProviderError if the request fails, the status is not a success,
                or the body cannot be parsed.
        """
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required to compute a route.")

        url = f"{self.base_url}/route/v1/{self.profile}/{self.format_coordinates(coordinates)}"

        try:
            response = self.session.get(
                url,
                params={
                    "overview": "false", # we don't need the geometry of the route
                },
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ProviderError(f"OSRM request failed: {exc}") from exc

        if not response.ok:
            logger.error("Error fetching distance data: %s %s", response.status_code, response.reason)
            raise ProviderError(f"OSRM returned HTTP {response.status_code}: {response.reason}")

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError("OSRM returned a non-JSON body") from exc

        #validating OSRM response
        if data.get("code") != "Ok":
            raise ProviderError(f"OSRM error: {data.get('message', data.get('code', 'Unknown error'))}")

        try:
            route = data["routes"][0] #take the first route (OSRM may return multiple routes)
            return {
                "distance": float(route["distance"]),
                "duration": float(route["duration"]),
            }
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise ProviderError("OSRM response is missing route distance/duration") from exc
