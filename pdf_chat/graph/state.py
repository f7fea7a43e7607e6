from typing import Any, List, Optional, TypedDict


class ChatState(TypedDict, total=False):
    doc_id: str
    user_id: str
    question: str
    engine: Any
    retriever: Any
    chat_history: List[Any]
    search_query: str
    context_docs: List[Any]
    answer: str
    error: Optional[BaseException]
    failed_stage: Optional[str]
    steps: List[str]
