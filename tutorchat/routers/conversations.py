from fastapi import APIRouter, Depends, status

from tutorchat.database.connection import mongo_db_dependency
from tutorchat.errors import ForbiddenError
from tutorchat.repositories.conversation_repository import ConversationRepository
from tutorchat.schemas.conversation import ConversationCreate, ConversationList, ConversationPublic, ConversationSummary
from tutorchat.services.chat_service import ChatService
from tutorchat.utils.dependencies import get_current_user


router = APIRouter(prefix="/conversations", tags=["chat"])


def _ensure_caller_in_pair(body: ConversationCreate, current_user: dict) -> None:
    # a caller may only open threads they take part in
    if current_user["_id"] not in (body.student_id, body.teacher_id):
        raise ForbiddenError(f"User {current_user['_id']} cannot open a conversation for other users")


def get_chat_service(db = Depends(mongo_db_dependency)) -> ChatService:
    convo_repo = ConversationRepository(db)
    return ChatService(convo_repo)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ConversationPublic)
async def create_conversation(body: ConversationCreate, current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    _ensure_caller_in_pair(body, current_user)
    convo = await service.create_conversation(**body.model_dump())
    return ConversationPublic.from_document(convo)


@router.post("/start", response_model=ConversationPublic)
async def start_conversation(body: ConversationCreate, current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    _ensure_caller_in_pair(body, current_user)
    convo = await service.start_conversation(**body.model_dump())
    return ConversationPublic.from_document(convo)


@router.get("", response_model=ConversationList)
async def list_conversations(current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    items = await service.list_conversations(current_user["_id"])
    return {"items": [ConversationSummary.from_document(it) for it in items]}


@router.get("/{conversation_id}", response_model=ConversationPublic)
async def get_conversation(conversation_id: str, current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    convo = await service.get_conversation(conversation_id, viewer_id=current_user["_id"])
    return ConversationPublic.from_document(convo)


@router.delete("/{conversation_id}")
async def delete_conversation(conversation_id: str, current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    await service.delete_conversation(conversation_id, requester_id=current_user["_id"])
    return {"deleted": True}
