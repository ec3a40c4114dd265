"""
Embedding providers for representative images and text prompts.
"""

from abc import ABC, abstractmethod
import hashlib
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image
from sentence_transformers import SentenceTransformer


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    def embed_image(self, image_path: Union[str, Path]) -> list[float]:
        """Generate embedding vector for an image file."""
        pass

    @abstractmethod
    def embed_text(self, text: str) -> list[float]:
        """Generate embedding vector for a text prompt."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass


class DeterministicHashEmbedding(IEmbeddingProvider):
    """Deterministic hash-based embedding provider for testing purposes.

    Vectors are derived from a SHA-256 stream seeded by the input, so the
    same text or the same image bytes always yield the same vector without
    downloading a model.
    """

    def __init__(self, dimension: int = 512):
        self.dimension = dimension

    def _vector_from_bytes(self, data: bytes) -> list[float]:
        vector = []
        counter = 0
        while len(vector) < self.dimension:
            digest = hashlib.sha256(data + counter.to_bytes(4, "little")).digest()
            for i in range(0, len(digest), 4):
                if len(vector) >= self.dimension:
                    break
                value = int.from_bytes(digest[i:i + 4], "little")
                # Map to [-1, 1]
                vector.append((value / (2**32)) * 2 - 1)
            counter += 1
        return vector

    def embed_image(self, image_path: Union[str, Path]) -> list[float]:
        """Generate deterministic embedding from the image file's bytes."""
        return self._vector_from_bytes(Path(image_path).read_bytes())

    def embed_text(self, text: str) -> list[float]:
        """Generate deterministic embedding vector using hash function."""
        return self._vector_from_bytes(text.encode("utf-8"))

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        return self.dimension


class ClipEmbedding(IEmbeddingProvider):
    """CLIP embedding provider via sentence-transformers.

    Uses clip-ViT-B-32 by default, which maps images and text into the same
    512-dimensional space so text prompts can be matched against images.
    """

    def __init__(self, model_name: str = "clip-ViT-B-32"):
        self.model_name = model_name
        self._model = None
        self._dimension = None

    @property
    def model(self):
        if self._model is None:
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def _encode(self, item) -> list[float]:
        embedding = self.model.encode(item, convert_to_numpy=True, normalize_embeddings=True)
        return np.asarray(embedding, dtype=np.float32).ravel().tolist()

    def embed_image(self, image_path: Union[str, Path]) -> list[float]:
        """Generate embedding vector for an image file."""
        with Image.open(image_path) as img:
            return self._encode(img.convert("RGB"))

    def embed_text(self, text: str) -> list[float]:
        """Generate embedding vector for a text prompt."""
        if not text or not text.strip():
            raise ValueError("Text prompt must be a non-empty string.")
        return self._encode(text)

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        if self._dimension is None:
            # Get dimension by encoding a dummy string
            self._dimension = len(self._encode("test"))
        return self._dimension
