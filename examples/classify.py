"""Document classification with bowtext and a linear bag-of-words model.

    python examples/classify.py
"""
import torch

from bowtext.models import BagOfWordsClassifier, ClassifierConfig
from bowtext.text import preprocess
from bowtext.tokenizer import ENGLISH_STOP_WORDS, Tokenizer
from bowtext.tokens import TokenTable

# define the training data
TRAINING_DATA = [
    ("school", "The teacher writes a formula on the blackboard, while students are studying for their exams."),
    ("school", "Students play soccer during the break after class, while a teacher watches over them."),
    ("school", "All the students are studying hard for the final exams."),
    ("nature", "The fox is running around the trees, while flowers bloom in the field."),
    ("nature", "Where are the rabbits hiding today? Their holes below the trees are empty."),
    ("nature", "The dark sky is bringing rain. The fox hides, rabbits find their holes, but the flowers surrender."),
    ("city",   "Cars are passing by swiftly, until the traffic lights become red."),
    ("city",   "Look at the high building, with so many windows. Who would live there?"),
    ("city",   "The shopping centre building is over there, you will find everything you need to buy."),
]

# after training, these test sentences will receive a predicted classification
TEST_DATA = [
    "How many students are in for the exams today?",
    "The forest has large trees, while the field has its flowers.",
    "Can we park our cars inside that building to go shopping?",
]

labels = TokenTable(offset=0)
tokenizer = Tokenizer(stop_words=ENGLISH_STOP_WORDS)

# encode: unique token ids per sentence, one label id each
bags, targets = [], []
for label, sentence in TRAINING_DATA:
    targets.append(labels.get(label))
    bags.append(list(dict.fromkeys(tokenizer.get(preprocess(sentence)))))
# tokenizer.tokens.limit(occurrence=2)  # smaller vocabulary, ids already encoded above are unaffected
tokenizer.tokens.freeze()
labels.freeze()

# train
model = BagOfWordsClassifier(ClassifierConfig(tokenizer.tokens.next_id, len(labels)))
optim = torch.optim.AdamW(model.parameters(), lr=0.5)
lengths = [len(b) for b in bags]
ids = torch.tensor([i for b in bags for i in b])
offsets = torch.tensor([0] + lengths[:-1]).cumsum(0)
y = torch.tensor(targets)
for _ in range(100):
    optim.zero_grad()
    loss = torch.nn.functional.cross_entropy(model(ids, offsets), y)
    loss.backward()
    optim.step()

# predict: unseen words resolve to nothing now that the table is frozen
model.eval()
for sentence in TEST_DATA:
    tokens = tokenizer.get(preprocess(sentence))
    label_id = model.predict([tokens])[0]
    words = " ".join(tokenizer.tokens.find(i) for i in tokens)
    print(f"{sentence} -> {words} -> {labels.find(label_id)}")

# you might want to persist data for prediction at a later time
# torch.save(model.state_dict(), "test.model")
# labels.save("test.labels")
# tokenizer.tokens.save("test.tokens")
