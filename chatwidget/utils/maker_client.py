from typing import Optional

import httpx


class MakerClientError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class MakerClient:
    """HTTP client the Bot Maker UI uses to manage bots and preview chats."""

    def __init__(
        self,
        base_url: str,
        admin_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        headers = {"X-Admin-Key": admin_key} if admin_key else {}
        self.client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def _request(self, method: str, path: str, **kwargs) -> dict:
        response = self.client.request(method, path, **kwargs)
        try:
            data = response.json()
        except ValueError:
            data = {}
        if response.is_error:
            message = data.get("error") or data.get("reply") or response.reason_phrase
            raise MakerClientError(response.status_code, message)
        return data

    def list_bots(self) -> list[dict]:
        return self._request("GET", "/api/list-bots").get("bots", [])

    def get_bot(self, bot_id: str) -> dict:
        return self._request("GET", "/api/get-bot", params={"id": bot_id})

    def create_bot(self, name: str, greeting: str, context: str = "") -> dict:
        data = self._request(
            "POST", "/api/create-bot", json={"name": name, "greeting": greeting, "context": context}
        )
        return data["bot"]

    def update_bot(self, bot_id: str, **changes) -> dict:
        return self._request("PUT", f"/api/update-bot/{bot_id}", json=changes)["bot"]

    def delete_bot(self, bot_id: str) -> None:
        self._request("DELETE", f"/api/delete-bot/{bot_id}")

    def chat(self, bot_id: str, message: str) -> str:
        return self._request("POST", "/api/chat", json={"message": message, "botId": bot_id})["reply"]

    def embed_snippet(self, bot_id: str) -> str:
        return f'<script src="{self.base_url}/widget.js" data-bot-id="{bot_id}"></script>'

    def close(self) -> None:
        self.client.close()
