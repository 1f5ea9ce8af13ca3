"""bowtext/dataset.py: bag-of-words training data
• Builds (and prunes) the token table in one pass over the corpus
• Encodes every sample once, so DataLoader workers only index tensors
"""
from __future__ import annotations

import logging
import os
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd
import torch
from torch.utils.data import Dataset

from .text import preprocess
from .tokenizer import Tokenizer
from .tokens import TokenTable

log = logging.getLogger(__name__)


def build_vocabulary(tokenizer: Tokenizer, texts: Iterable[str],
                     max_size: Optional[int] = None,
                     occurrence: Optional[int] = None) -> int:
    """Count every token in *texts*, prune, then freeze the table.

    Returns the number of tokens kept.
    """
    tokens = tokenizer.tokens
    if tokens.frozen:
        raise RuntimeError("token table is frozen; thaw it before building a vocabulary")
    for txt in texts:
        tokenizer.get(preprocess(txt))
    seen = len(tokens)
    kept = tokens.limit(max_size=max_size, occurrence=occurrence)
    tokens.freeze()
    log.info("vocabulary: %d tokens seen, %d kept", seen, kept)
    return kept


class BagOfWordsDataset(Dataset):
    """Pre-encoded bag-of-words classification dataset.

    Each item returns (token_ids, label_id). Token ids are de-duplicated
    (presence features, first-seen order); label ids come from a separate
    label table. With a frozen tokenizer table, tokens it doesn't know
    are silently dropped.
    """

    def __init__(self, texts: Sequence[str], labels: Sequence[str],
                 tokenizer: Tokenizer, label_table: TokenTable):
        if len(texts) != len(labels):
            raise ValueError(f"got {len(texts)} texts but {len(labels)} labels")
        self.tokenizer = tokenizer
        self.label_table = label_table

        self.samples: list[torch.Tensor] = []
        self.targets: list[int] = []
        for txt, label in zip(texts, labels):
            label_id = label_table.get(str(label))
            if label_id is None:
                raise KeyError(f"unknown label {label!r}")
            ids = list(dict.fromkeys(tokenizer.get(preprocess(txt))))
            self.samples.append(torch.tensor(ids, dtype=torch.long))
            self.targets.append(label_id)

    @classmethod
    def from_parquet(cls, parquet_path: str, tokenizer: Tokenizer,
                     label_table: TokenTable, text_column: str = "text",
                     label_column: str = "label") -> "BagOfWordsDataset":
        if not os.path.isfile(parquet_path):
            raise FileNotFoundError(f"Missing {parquet_path}")
        df = pd.read_parquet(parquet_path, columns=[text_column, label_column]).dropna()
        return cls(df[text_column].tolist(), df[label_column].astype(str).tolist(),
                   tokenizer, label_table)

    # dataset protocol ---------------------------------------------------
    def __len__(self) -> int:
        return len(self.samples)

    def __getitem__(self, idx: int) -> Tuple[torch.Tensor, int]:
        return self.samples[idx], self.targets[idx]


def collate_bags(batch: List[Tuple[torch.Tensor, int]]):
    """Flatten a batch into the (ids, offsets, labels) layout EmbeddingBag wants."""
    lengths = [len(ids) for ids, _ in batch]
    offsets = torch.tensor([0] + lengths[:-1], dtype=torch.long).cumsum(0)
    ids = torch.cat([ids for ids, _ in batch]) if batch else torch.empty(0, dtype=torch.long)
    labels = torch.tensor([y for _, y in batch], dtype=torch.long)
    return ids, offsets, labels
