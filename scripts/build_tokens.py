"""Build a pruned token table from a parquet corpus.

    scripts/build_tokens.py data/corpus.parquet data/tokens.txt --min-occurrence 2
"""
import argparse
import os

import pandas as pd

from bowtext.dataset import build_vocabulary
from bowtext.tokenizer import MIN_LENGTH, Tokenizer
from bowtext.tokens import TokenTable

parser = argparse.ArgumentParser(formatter_class=argparse.ArgumentDefaultsHelpFormatter)
parser.add_argument("corpus", help="Parquet file with a text column")
parser.add_argument("out", help="Token file to write")
parser.add_argument("--column", default="text")
parser.add_argument("--min-length", type=int, default=MIN_LENGTH)
parser.add_argument("--min-occurrence", type=int, default=None)
parser.add_argument("--max-tokens", type=int, default=None)
parser.add_argument("--offset", type=int, default=1)
args = parser.parse_args()

# 1) Load the corpus
df = pd.read_parquet(args.corpus, columns=[args.column])
texts = df[args.column].dropna().tolist()

# 2) Count and prune
tokenizer = Tokenizer(TokenTable(offset=args.offset), min_length=args.min_length)
kept = build_vocabulary(tokenizer, texts, max_size=args.max_tokens, occurrence=args.min_occurrence)

# 3) Save
os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)
tokenizer.tokens.save(args.out)

print(f"Kept {kept} tokens from {len(texts)} texts, saved to {args.out}")
