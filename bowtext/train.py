"""
Training loop for the bag-of-words classifier
Run with:
    python -m bowtext.train --data data/corpus.parquet --min-occurrence 2
"""
from __future__ import annotations
import os, time, json, argparse, random
from pathlib import Path
import pandas as pd
import torch
from torch.utils.data import DataLoader, random_split
from tqdm import tqdm

from .models import ClassifierConfig, BagOfWordsClassifier
from .dataset import BagOfWordsDataset, build_vocabulary, collate_bags
from .tokenizer import Tokenizer, MIN_LENGTH
from .tokens import TokenTable, DEFAULT_OFFSET

# artifact names inside the output directory
MODEL_FILE  = "model.pt"
TOKENS_FILE = "tokens.txt"
LABELS_FILE = "labels.txt"
CONFIG_FILE = "config.json"

# ───────────────────────────────────────────────────────────────
DEFAULTS: dict[str, object] = dict(
    data           = "data/corpus.parquet",
    out_dir        = "data",
    text_column    = "text",
    label_column   = "label",
    stop_words     = "",           # comma-separated; empty → built-in list
    min_length     = MIN_LENGTH,
    offset         = DEFAULT_OFFSET,
    max_tokens     = 0,            # 0 → no size cap
    min_occurrence = 1,
    batch_size     = 32,
    max_epochs     = 30,
    lr             = 0.1,
    weight_decay   = 1e-4,
    patience       = 5,
    min_delta      = 0.001,
    val_split      = 0.1,
    seed           = 42,
)

# ───────────────────────── helpers ─────────────────────────────
def _set_seeds(seed: int) -> None:
    random.seed(seed)
    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed)


def _make_tokenizer(hp: dict) -> Tokenizer:
    tokens = TokenTable(offset=hp["offset"])
    if hp["stop_words"]:
        words = [w.strip() for w in str(hp["stop_words"]).split(",") if w.strip()]
        return Tokenizer(tokens, min_length=hp["min_length"], stop_words=words)
    return Tokenizer(tokens, min_length=hp["min_length"])

# ───────────────────────── train() ─────────────────────────────
def train(texts: list[str] | None = None, labels: list[str] | None = None, **cfg_args) -> Path:
    """Fit a classifier and write its artifacts; returns the output dir.

    Pass *texts*/*labels* directly or point ``data`` at a parquet file.
    """
    hp = {**DEFAULTS, **cfg_args}
    _set_seeds(hp["seed"])

    if texts is None:
        parquet = str(hp["data"])
        if not os.path.isfile(parquet):
            raise FileNotFoundError(f"Missing {parquet}")
        df = pd.read_parquet(parquet, columns=[hp["text_column"], hp["label_column"]]).dropna()
        texts = df[hp["text_column"]].tolist()
        labels = df[hp["label_column"]].astype(str).tolist()
    if labels is None or len(labels) != len(texts):
        raise ValueError("need exactly one label per text")

    # 1) Vocabulary: count, prune, freeze
    tokenizer = _make_tokenizer(hp)
    build_vocabulary(tokenizer, texts,
                     max_size=hp["max_tokens"] or None,
                     occurrence=hp["min_occurrence"] or None)
    label_table = TokenTable(offset=0)  # label ids double as logit indices
    for lab in labels:
        label_table.get(str(lab))
    label_table.freeze()

    # 2) Dataset (encoded against the frozen, pruned table)
    full = BagOfWordsDataset(texts, labels, tokenizer, label_table)
    val_len = int(hp["val_split"] * len(full)) if len(full) > 1 else 0
    train_ds, val_ds = random_split(full, [len(full) - val_len, val_len])
    print(f"{len(full)} samples  {len(tokenizer.tokens)} tokens  {len(label_table)} labels")

    # 3) Model
    cfg = ClassifierConfig(vocab_size=tokenizer.tokens.next_id, num_labels=len(label_table))
    device = "cuda" if torch.cuda.is_available() else "cpu"
    model  = BagOfWordsClassifier(cfg).to(device)

    train_dl = DataLoader(train_ds, hp["batch_size"], True,  collate_fn=collate_bags)
    val_dl   = DataLoader(val_ds,   hp["batch_size"], False, collate_fn=collate_bags)

    optim   = torch.optim.AdamW(model.parameters(), lr=hp["lr"], weight_decay=hp["weight_decay"])
    loss_fn = torch.nn.CrossEntropyLoss()

    # 4) Validation helper
    def val_loss() -> float | None:
        if not val_len:
            return None
        model.eval(); loss = 0.0
        with torch.no_grad():
            for ids, offsets, yb in val_dl:
                ids, offsets, yb = ids.to(device), offsets.to(device), yb.to(device)
                loss += loss_fn(model(ids, offsets), yb).item()
        return loss / len(val_dl)

    # 5) Train loop
    out_dir = Path(hp["out_dir"])
    out_dir.mkdir(parents=True, exist_ok=True)
    best, flat = None, 0
    for epoch in range(1, hp["max_epochs"] + 1):
        model.train()
        running, t0 = 0.0, time.time()

        bar = tqdm(train_dl, desc=f"Epoch {epoch}/{hp['max_epochs']}", leave=False)
        for ids, offsets, yb in bar:
            ids, offsets, yb = ids.to(device), offsets.to(device), yb.to(device)
            optim.zero_grad(set_to_none=True)
            loss = loss_fn(model(ids, offsets), yb)
            loss.backward()
            optim.step()
            running += loss.item()
            bar.set_postfix(loss=f"{loss.item():.3f}")
        bar.close()

        train_loss = running / max(1, len(train_dl))
        v = val_loss()
        monitored = train_loss if v is None else v
        print(f"epoch {epoch}  train {train_loss:.3f}  "
              f"val {'-' if v is None else f'{v:.3f}'}  time {time.time()-t0:.1f} s")

        if best is None or best - monitored > hp["min_delta"]:
            best, flat = monitored, 0
            torch.save(model.state_dict(), out_dir / MODEL_FILE)
        else:
            flat += 1
            if flat >= hp["patience"]:
                print("🚫  Early-stopping"); break

    # 6) Artifacts: tables are saved frozen, so a reload behaves the same
    tokenizer.tokens.save(out_dir / TOKENS_FILE)
    label_table.save(out_dir / LABELS_FILE)
    (out_dir / CONFIG_FILE).write_text(json.dumps({
        **cfg.to_dict(),
        "offset": hp["offset"],
        "min_length": hp["min_length"],
        "stop_words": sorted(tokenizer.stop_words),
    }, indent=2))
    print(f"✅  Saved model, tokens and labels to {out_dir}")
    return out_dir

# ── CLI shim ───────────────────────────────────────────────────
if __name__ == "__main__":
    arg = argparse.ArgumentParser(formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    for k,v in DEFAULTS.items(): arg.add_argument(f"--{k.replace('_','-')}", type=type(v), default=v)
    arg.add_argument("--cfg-json", type=str, help="Path to JSON overrides")
    ns = vars(arg.parse_args())
    if ns.get("cfg_json"): ns.update(json.loads(Path(ns.pop("cfg_json")).read_text()))
    ns.pop("cfg_json", None)
    train(**ns)
