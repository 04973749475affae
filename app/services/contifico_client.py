# app/services/contifico_client.py
import logging
import requests
from typing import List, Dict, Any

from app.core.config import settings
from app.core.errors import ExternalApiError, NotFoundError


class ContificoClient:
    def __init__(self, base_url: str = None, api_key: str = None, pos_token: str = None, timeout: int = None):
        self.base_url = (base_url or settings.CONTIFICO_URI).rstrip("/")
        self.pos_token = pos_token or settings.CONTIFICO_AUTH_TOKEN
        self.timeout = timeout or settings.CONTIFICO_TIMEOUT
        self.headers = {
            'Authorization': api_key or settings.CONTIFICO_API_KEY,
            'Content-Type': 'application/json'
        }

    def _request(self, method: str, endpoint: str, params: Dict = None, data: Dict = None) -> Any:
        """
        Realiza una petición a la API de Contifico y devuelve el JSON decodificado.
        endpoint: ruta relativa (ejemplo: 'registro/documento/')
        Lanza ExternalApiError con el mensaje y el estado de Contifico si la respuesta es un error.
        """
        url = f"{self.base_url}/{endpoint}"
        try:
            response = requests.request(method, url, headers=self.headers, params=params, json=data, timeout=self.timeout)
        except requests.exceptions.RequestException as err:
            logging.error(f"[ContificoClient] Error de red al consultar {url}: {err}")
            raise ExternalApiError("Error al comunicarse con Contifico", 502) from err

        if response.status_code >= 400:
            payload = _json_or_none(response)
            message = None
            if isinstance(payload, dict):
                message = payload.get("mensaje") or payload.get("message") or payload.get("detail")
            logging.error(f"[ContificoClient] Error HTTP {response.status_code} en {method} {url}: {response.text}")
            raise ExternalApiError(
                message or response.text or "Error al comunicarse con Contifico",
                response.status_code,
                payload=payload,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as err:
            logging.error(f"[ContificoClient] Respuesta no JSON en {method} {url}: {response.text}")
            raise ExternalApiError("Respuesta inválida de Contifico", 502) from err

    def get_documents(self, emission_date: str) -> List[Dict[str, Any]]:
        """Documentos de venta (tipo_registro=CLI) emitidos en la fecha DD/MM/YYYY"""
        params = {'tipo_registro': 'CLI', 'fecha_emision': emission_date}
        return self._request("GET", "registro/documento/", params=params) or []

    def create_category(self, data: Dict) -> Dict[str, Any]:
        return self._request("POST", "categoria/", data=data)

    def create_product(self, data: Dict) -> Dict[str, Any]:
        return self._request("POST", "producto/", data=data)

    def get_warehouses(self) -> List[Dict[str, Any]]:
        return self._request("GET", "bodega/") or []

    def create_inventory_movement(self, data: Dict) -> Dict[str, Any]:
        return self._request("POST", "movimiento-inventario/", data=data)

    def create_person(self, data: Dict) -> Dict[str, Any]:
        return self._request("POST", "persona/", params={'pos': self.pos_token}, data=data)

    def get_person(self, person_id: str) -> Dict[str, Any]:
        try:
            return self._request("GET", f"persona/{person_id}/")
        except ExternalApiError as err:
            if err.status_code == 404:
                raise NotFoundError(f"No existe la persona {person_id} en Contifico") from err
            raise

    def create_document(self, data: Dict) -> Dict[str, Any]:
        return self._request("POST", "documento/", data=data)


def _json_or_none(response):
    try:
        return response.json()
    except ValueError:
        return None


def get_contifico_client() -> ContificoClient:
    return ContificoClient()
