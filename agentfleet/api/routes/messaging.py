"""Messaging API routes."""

from fastapi import APIRouter, HTTPException

from ...app import IApplication
from ..schemas import MessageRequest, MessageResponse, PublishResponse, message_to_response


def create_messaging_router(app: IApplication) -> APIRouter:
    """Create messaging router."""
    router = APIRouter(prefix="/api", tags=["messaging"])

    @router.post("/messages", response_model=PublishResponse)
    async def publish_message(request: MessageRequest) -> dict:
        """Persist a message and deliver it to its subscribers."""
        coordinator = app.coordinator
        message = coordinator.message_bus.create_message(
            request.sender,
            request.target,
            request.type,
            request.payload,
            request.related_files,
        )
        try:
            await coordinator.send(message)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        return {
            "id": message.id,
            "path": coordinator.message_bus.get_message_path(message),
        }

    @router.get("/messages/{agent_id}", response_model=list[MessageResponse])
    async def get_messages(agent_id: str) -> list[MessageResponse]:
        """Stored messages addressed to an agent, oldest first."""
        try:
            messages = await app.storage.get_messages_for_agent(agent_id)
            return [message_to_response(m) for m in messages]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
