"""
Text embedding provider.

The document store embeds content on insert and the orchestrator embeds the
latest user message before ranking. Both take a provider in their
constructor and never touch the OpenAI client directly.
"""

from __future__ import annotations

import numpy as np
from openai import AsyncOpenAI

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-large"


class OpenAIEmbeddings:
    """
    Embeds text through the shared AsyncOpenAI client.

    The model name is stored next to every document so vectors from a
    different model are never compared against each other.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = DEFAULT_EMBEDDING_MODEL,
    ):
        self._model = model
        self._client = client

    @property
    def model(self) -> str:
        return self._model

    async def embed(self, text: str) -> np.ndarray:
        response = await self._client.embeddings.create(input=text, model=self._model)
        vector = response.data[0].embedding
        return np.asarray(vector, dtype=np.float32)
