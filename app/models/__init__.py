from app.models.board import Board, BoardData
from app.models.chat import Chat

__all__ = ["Board", "BoardData", "Chat"]
