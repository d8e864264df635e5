from fastapi import APIRouter, Depends, status

from tutorchat.routers.conversations import get_chat_service
from tutorchat.schemas.conversation import MarkReadResult, MessageCreate, MessagePublic, UnreadCount
from tutorchat.services.chat_service import ChatService
from tutorchat.utils.dependencies import get_current_user


router = APIRouter(prefix="/conversations/{conversation_id}", tags=["chat"])


@router.post("/messages", status_code=status.HTTP_201_CREATED, response_model=MessagePublic)
async def send_message(conversation_id: str, body: MessageCreate, current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    attachment = body.attachment.model_dump() if body.attachment else None
    return await service.send_message(conversation_id, current_user["_id"], current_user.get("name"), body.content, attachment)


@router.post("/read", response_model=MarkReadResult)
async def mark_read(conversation_id: str, current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    count = await service.mark_read(conversation_id, current_user["_id"])
    return {"updated": count}


@router.get("/unread", response_model=UnreadCount)
async def unread_count(conversation_id: str, current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    count = await service.unread_count(conversation_id, current_user["_id"])
    return {"conversation_id": conversation_id, "unread_count": count}
