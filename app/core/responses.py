from fastapi.responses import JSONResponse
from fastapi import status
from typing import Any, Optional

from app.schemas.state import UiState

class ResponseTemplate:
    @staticmethod
    def envelope(
        success: bool,
        message: str,
        status_code: int,
        data: Any = None,
    ) -> dict:
        content = {
            "success": success,
            "status_code": status_code,
            "message": message,
        }
        if data is not None:
            content["data"] = data
        return content

    @staticmethod
    def success(
        data: Any = None,
        message: str = "Success",
        status_code: int = status.HTTP_200_OK
    ) -> JSONResponse:
        return JSONResponse(
            content=ResponseTemplate.envelope(True, message, status_code, data),
            status_code=status_code
        )

    @staticmethod
    def state(ui_state: UiState, message: Optional[str] = None) -> JSONResponse:
        """Wraps a session's UiState; the toast text doubles as the envelope message."""
        if message is None:
            message = ui_state.notice.message if ui_state.notice else "Success"
        return ResponseTemplate.success(data=ui_state.model_dump(mode="json"), message=message)

    @staticmethod
    def error(
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        data: Any = None,
    ) -> JSONResponse:
        return JSONResponse(
            content=ResponseTemplate.envelope(False, message, status_code, data),
            status_code=status_code
        )
