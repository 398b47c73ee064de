# -*- coding: utf-8 -*-
"""
BGE-M3 embedder for RavenLoom.

Used for node embeddings ("{type}: {name}. {description}"), chunk embeddings,
fact embeddings and query embeddings. Model loading is lazy so that importing
services never pulls weights into memory.

Embedding failures are not errors for callers: generate_embedding() returns
None and the caller stores a NULL vector (or skips vector search).
"""
# Standard library
import asyncio
import logging
from typing import List, Optional

# Third-party
import numpy as np
from sentence_transformers import SentenceTransformer

# Config imports (direct)
from config.extraction_config import EMBEDDING_CONFIG

logger = logging.getLogger(__name__)


class BGEEmbedder:
    """
    Lazy BGE-M3 embedder.

    Example:
        embedder = BGEEmbedder(device='cpu')
        vec = await embedder.generate_embedding("product: Fugly. A mobile app")
    """

    def __init__(
        self,
        model_name: str = EMBEDDING_CONFIG['model_name'],
        device: Optional[str] = EMBEDDING_CONFIG['device'],
        embedding_dim: int = EMBEDDING_CONFIG['dimension'],
    ):
        """
        Args:
            model_name: HuggingFace model identifier
            device: 'cpu', 'cuda', or None for auto-detect
            embedding_dim: Expected output width (must match the vector columns)
        """
        self.model_name = model_name
        self.device = device
        self.embedding_dim = embedding_dim
        self._model: Optional[SentenceTransformer] = None

    @property
    def model(self) -> SentenceTransformer:
        if self._model is None:
            logger.info(f"Loading embedding model: {self.model_name}")
            self._model = SentenceTransformer(self.model_name, device=self.device)
            logger.info(f"Model loaded on device: {self._model.device}")
        return self._model

    def embed_single(self, text: str) -> np.ndarray:
        """Embed one text synchronously. Raises on model errors."""
        embedding = self.model.encode(text, convert_to_numpy=True, normalize_embeddings=True)
        if embedding.shape[-1] != self.embedding_dim:
            raise ValueError(
                f"Expected {self.embedding_dim}-dim, got {embedding.shape[-1]}-dim"
            )
        return embedding

    async def generate_embedding(self, text: Optional[str]) -> Optional[List[float]]:
        """
        Embed text off the event loop.

        Returns:
            Embedding as a list of floats, or None for blank text or any failure
        """
        if not text or not text.strip():
            return None
        try:
            embedding = await asyncio.to_thread(self.embed_single, text)
        except Exception as e:
            logger.warning(f"Embedding failed ({len(text)} chars): {e}")
            return None
        return embedding.tolist()
