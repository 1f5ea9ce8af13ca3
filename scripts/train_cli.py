#!/usr/bin/env python3
"""
High-level CLI wrapper around bowtext.train.train()

Examples
========
# vanilla run
scripts/train_cli.py --data data/corpus.parquet --min-occurrence 2

# vocabulary-size sweep
for n in 1000 5000 20000; do
  scripts/train_cli.py --run-name "vocab_${n}" --max-tokens $n --out-dir "runs/vocab_${n}"
done
"""
import importlib
import argparse
from pathlib import Path
import json

train_mod = importlib.import_module("bowtext.train")
train_fn  = train_mod.train

parser = argparse.ArgumentParser(formatter_class=argparse.ArgumentDefaultsHelpFormatter)
for k, v in train_mod.DEFAULTS.items():
    parser.add_argument(f"--{k.replace('_', '-')}", type=type(v), default=v)
parser.add_argument("--run-name", type=str, default="default")
parser.add_argument("--cfg-json", type=str, help="Path to JSON file of overrides")

args = vars(parser.parse_args())

# optional JSON overrides
if args["cfg_json"]:
    overrides = json.loads(Path(args["cfg_json"]).read_text())
    args.update(overrides)

print("⇢  Launching training run", args.pop("run_name"))
args.pop("cfg_json", None)
train_fn(**args)
