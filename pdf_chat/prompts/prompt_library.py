from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder


# Prompt for turning a follow-up question into a standalone search query
contextualize_question_prompt = ChatPromptTemplate.from_messages(
    [
        MessagesPlaceholder("chat_history"),
        ("human", "{input}"),
        (
            "human",
            (
                "Given the above conversation, generate a search query to look up "
                "in order to get information relevant to the conversation.\n"
                "Resolve references such as 'it', 'that' or 'section 2' using the earlier turns.\n"
                "Return ONLY the search query as plain text."
            ),
        ),
    ]
)


# Prompt for answering based on retrieved context
context_qa_prompt = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "Answer the user's questions based on the below context:\n\n{context}",
        ),
        MessagesPlaceholder("chat_history"),
        ("human", "{input}"),
    ]
)


# Central dictionary to register prompts
PROMPT_REGISTRY = {
    "contextualize_question": contextualize_question_prompt,
    "context_qa": context_qa_prompt,
}
