import sys, json, pandas as pd
rows = [json.loads(l) for l in open(sys.argv[1], encoding="utf8") if l.strip()]
df = pd.DataFrame(rows, columns=["text", "label"]).dropna().drop_duplicates("text")
print("Rows:", len(df))

out = sys.argv[2] if len(sys.argv) > 2 else "data/corpus.parquet"
df.to_parquet(out, index=False)
print("Wrote", out)
