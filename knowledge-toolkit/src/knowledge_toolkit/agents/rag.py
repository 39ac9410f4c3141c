"""
Retrieval-Augmented Generation (RAG) agent.

'RAG' combines document retrieval with language model generation. For every
query it retrieves the most similar knowledge base documents, renders them into
a prompt together with a bounded slice of the conversation, calls the LLM once,
and labels the answer with a confidence derived from the retrieval scores.

Retrieval is best-effort: when it fails the agent answers with an explicit
"no context" marker instead. A generation failure yields a fixed apology. In
both cases the caller receives a normal 'RAGResult'.
"""

from loguru import logger

from knowledge_toolkit.agents.base import Agent, QueryWithContext, RAGResult, StageOutcome
from knowledge_toolkit.llms.base import LLM
from knowledge_toolkit.retriever.base import RetrievedContext, Retriever
from knowledge_toolkit.utils.confidence import Confidence, ConfidenceEstimator
from knowledge_toolkit.utils.prompt import DEFAULT_HISTORY_WINDOW, compose_prompt

DEFAULT_SYSTEM_PROMPT = (
    "You are an enterprise AI assistant. Use the following context to answer questions accurately. "
    "If the context doesn't contain the answer, say that the information is not available in the knowledge base "
    "and avoid making up facts."
)

FALLBACK_RESPONSE = (
    "I encountered an error while trying to answer that question using the knowledge base. "
    "You may try again in a moment, or contact an administrator if the problem persists."
)

DEFAULT_RETRIEVAL_TOP_K = 3


class RAG(Agent):
    """
    RAG agent that retrieves documents before generating an answer.

    The agent is stateless across calls; conversation state belongs to the
    caller, which passes the relevant history in 'QueryWithContext'.

    Attributes:
        retriever: Source of ranked context documents.
        top_k: Number of documents requested per query.
        history_window: Number of most recent history entries rendered into the prompt.
        confidence_estimator: Maps the retrieved documents to a 'Confidence' label.
    """

    def __init__(
        self,
        llm: LLM,
        retriever: Retriever,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        description: str = "",
        top_k: int = DEFAULT_RETRIEVAL_TOP_K,
        history_window: int = DEFAULT_HISTORY_WINDOW,
        confidence_estimator: ConfidenceEstimator | None = None,
        fallback_response: str = FALLBACK_RESPONSE,
    ):
        super().__init__(system_prompt, description)
        self.llm = llm
        self.retriever = retriever
        self.top_k = top_k
        self.history_window = history_window
        self.confidence_estimator = confidence_estimator or ConfidenceEstimator()
        self.fallback_response = fallback_response

    def fallback(self) -> RAGResult:
        return RAGResult(response=self.fallback_response, sources=[], confidence=Confidence.LOW)

    async def _retrieve(self, query: str) -> StageOutcome[RetrievedContext]:
        try:
            return StageOutcome.success(await self.retriever.retrieve_context(query, self.top_k))
        except Exception as exc:
            return StageOutcome.failure(f"{type(exc).__name__}: {exc}")

    async def _generate(self, prompt: str) -> StageOutcome[str]:
        try:
            return StageOutcome.success(await self.llm.generate(prompt))
        except Exception as exc:
            return StageOutcome.failure(f"{type(exc).__name__}: {exc}")

    async def answer(self, query_with_context: QueryWithContext) -> RAGResult:
        query = query_with_context.query
        history = query_with_context.history[-self.history_window :] if self.history_window > 0 else []

        retrieval = await self._retrieve(query)
        if retrieval.ok and retrieval.value is not None:
            context = retrieval.value
        else:
            logger.error(f"Context retrieval failed, answering without context: {retrieval.error}")
            context = RetrievedContext()

        prompt = compose_prompt(self.system_prompt, context.context_text, history, query, self.history_window)

        generation = await self._generate(prompt)
        if not generation.ok or generation.value is None:
            logger.error(f"RAG generation failed: {generation.error}")
            return self.fallback()

        confidence = self.confidence_estimator.estimate(context.documents)
        logger.info(f"Answered with {len(context.documents)} sources (confidence={confidence})")
        return RAGResult(response=generation.value, sources=context.documents, confidence=confidence)
