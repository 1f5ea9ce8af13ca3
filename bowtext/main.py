"""bowtext/main.py
──────────────────────────────────────────────────────────────────
FastAPI entrypoint serving a trained bag-of-words classifier:

  • `/tokenize`      – token ids (and tokens) for a piece of text.
  • `/predict`       – predicted label for a piece of text.
  • `/tokens/{id}`   – reverse lookup of a single token id.

Artifacts come from `python -m bowtext.train`; both token tables are
loaded frozen, so serving never grows the vocabulary. Run with:

    uvicorn bowtext.main:create_app --factory
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List

import torch
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .models import BagOfWordsClassifier, ClassifierConfig
from .text import clean_text, preprocess
from .tokenizer import Tokenizer
from .tokens import TokenTable
from .train import CONFIG_FILE, LABELS_FILE, MODEL_FILE, TOKENS_FILE

DATA_DIR = os.getenv("BOWTEXT_DATA", "data")

# ────────────────────────────────────────────────────────────────
# Schemas
# ────────────────────────────────────────────────────────────────
class TextReq(BaseModel):
    text: str = Field(..., max_length=100_000)

class TokenizeResp(BaseModel):
    ids: List[int]
    tokens: List[str]

class PredictResp(BaseModel):
    label: str
    tokens: List[str]

class TokenResp(BaseModel):
    id: int
    token: str

# ────────────────────────────────────────────────────────────────
# Application factory
# ────────────────────────────────────────────────────────────────
def create_app(data_dir: str | os.PathLike | None = None) -> FastAPI:
    root = Path(data_dir or DATA_DIR)
    paths = {name: root / name for name in (MODEL_FILE, TOKENS_FILE, LABELS_FILE, CONFIG_FILE)}
    missing = [str(p) for p in paths.values() if not p.is_file()]
    if missing:
        raise RuntimeError(f"Artifacts not found ({', '.join(missing)}); run bowtext.train first.")

    meta = json.loads(paths[CONFIG_FILE].read_text())
    tokens = TokenTable.from_file(paths[TOKENS_FILE], offset=meta.get("offset", 1))
    labels = TokenTable.from_file(paths[LABELS_FILE], offset=0)
    tokenizer = Tokenizer(tokens, min_length=meta["min_length"], stop_words=meta["stop_words"])

    cfg = ClassifierConfig(vocab_size=meta["vocab_size"], num_labels=meta["num_labels"])
    model = BagOfWordsClassifier(cfg)
    model.load_state_dict(torch.load(paths[MODEL_FILE], map_location="cpu"))
    model.eval()

    app = FastAPI(title="bowtext", version="0.1.0")

    def _words(ids: list[int]) -> list[str]:
        return [clean_text(tokens.find(i) or "") for i in ids]

    @app.post("/tokenize", response_model=TokenizeResp)
    def tokenize(req: TextReq):
        ids = tokenizer.get(preprocess(req.text))  # duplicates kept, in text order
        return TokenizeResp(ids=ids, tokens=_words(ids))

    @app.post("/predict", response_model=PredictResp)
    def predict(req: TextReq):
        ids = list(dict.fromkeys(tokenizer.get(preprocess(req.text))))  # presence features
        words = _words(ids)
        label_id = model.predict([ids])[0]
        label = labels.find(label_id)
        if label is None:
            raise HTTPException(status_code=500, detail=f"label id {label_id} has no name")
        return PredictResp(label=label, tokens=words)

    @app.get("/tokens/{token_id}", response_model=TokenResp)
    def token(token_id: int):
        found = tokens.find(token_id)
        if found is None:
            raise HTTPException(status_code=404, detail=f"unknown token id {token_id}")
        return TokenResp(id=token_id, token=clean_text(found))

    return app
