"""
Linear bag-of-words classifier in pure PyTorch.

You can:  1) import BagOfWordsClassifier in bowtext.main
          2) run bowtext.train to fit it on a labelled corpus
"""
from typing import List, Sequence

import torch
import torch.nn as nn

# ────────────────────────────────────────────────────────────
# Config
# ────────────────────────────────────────────────────────────
class ClassifierConfig:
    def __init__(self, vocab_size: int, num_labels: int, dropout: float = 0.0):
        # one row per token id ever assigned, retired ids included,
        # so this is the token table's next_id rather than its size
        self.vocab_size = vocab_size
        self.num_labels = num_labels
        self.dropout = dropout

    def to_dict(self) -> dict:
        return {"vocab_size": self.vocab_size, "num_labels": self.num_labels,
                "dropout": self.dropout}

# ────────────────────────────────────────────────────────────
# Model
# ────────────────────────────────────────────────────────────
class BagOfWordsClassifier(nn.Module):
    """Sum of per-token label weights plus a bias: a linear model over
    multi-hot token features, stored sparsely in an EmbeddingBag."""

    def __init__(self, cfg: ClassifierConfig):
        super().__init__()
        self.cfg = cfg
        self.weights = nn.EmbeddingBag(cfg.vocab_size, cfg.num_labels, mode="sum")
        self.bias = nn.Parameter(torch.zeros(cfg.num_labels))
        self.dropout = nn.Dropout(cfg.dropout)
        nn.init.zeros_(self.weights.weight)

    def forward(self, ids: torch.Tensor, offsets: torch.Tensor) -> torch.Tensor:
        # ids: (N,) flattened token ids, offsets: (B,) bag starts
        return self.dropout(self.weights(ids, offsets)) + self.bias  # (B, labels)

    @torch.inference_mode()
    def predict(self, bags: Sequence[Sequence[int]]) -> List[int]:
        """Most likely label id for each bag of token ids."""
        if not bags:
            return []
        device = self.bias.device
        lengths = [len(b) for b in bags]
        offsets = torch.tensor([0] + lengths[:-1], dtype=torch.long, device=device).cumsum(0)
        ids = torch.tensor([i for b in bags for i in b], dtype=torch.long, device=device)
        logits = self(ids, offsets)
        return logits.argmax(dim=-1).tolist()
