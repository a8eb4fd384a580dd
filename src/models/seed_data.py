"""
Seed dataset written on first start so the notebook is immediately usable
"""
from typing import Callable, List

from loguru import logger

from models.document_store import DocumentStore
from models.vocab_models import Word, WordGroup
from utils.identifiers import now_ms

DAY_MS = 86_400_000

# (id, title, days ago, word id prefix, [(term, cn, en, jp, reading), ...])
SEED_GROUPS = [
    ("seed-day-1", "Day 1", 2, "d1", [
        ("prominent", "卓越的，显著的", "important or famous", "傑出した", "けっしゅつした"),
        ("inadequate", "不充分的", "not good enough", "不十分な", "ふじゅうぶんな"),
        ("ambiguous", "模棱两可的", "open to more than one interpretation", "曖昧な", "あいまいな"),
        ("inherent", "固有的", "existing as a permanent attribute", "固有の", "こゆうの"),
        ("viable", "可行的", "capable of working successfully", "実行可能な", "じっこうかのうな"),
        ("plausible", "看似合理的", "seeming reasonable or probable", "もっともらしい", ""),
        ("naive", "天真的", "showing a lack of experience", "世間知らずな", "せけんしらずな"),
        ("strive", "努力", "make great efforts to achieve", "努力する", "どりょくする"),
        ("abundance", "丰富", "a very large quantity of something", "豊富", "ほうふ"),
        ("deployment", "部署", "bringing resources into effective action", "配備", "はいび"),
    ]),
    ("seed-day-2", "Day 2", 1, "d2", [
        ("intuition", "直觉", "ability to understand immediately", "直感", "ちょっかん"),
        ("prejudice", "偏见", "preconceived opinion not based on reason", "偏見", "へんけん"),
        ("frail", "脆弱的", "weak and delicate", "虚弱な", "きょじゃくな"),
        ("scramble", "争夺，攀登", "make one's way quickly or awkwardly", "よじ登る", "よじのぼる"),
        ("disconnect", "断开", "break the connection", "切断", "せつだん"),
        ("deficiency", "缺乏", "a lack or shortage", "欠乏", "けつぼう"),
        ("animated", "生机勃勃的", "full of life or excitement", "生き生きとした", "いきいきとした"),
        ("abstract", "抽象的", "existing in thought but not physical", "抽象的な", "ちゅうしょうてきな"),
        ("analogy", "类比", "a comparison between two things", "類推", "るいすい"),
        ("adequate", "足够的", "satisfactory or acceptable", "十分な", "じゅうぶんな"),
    ]),
    ("seed-day-3", "Day 3", 0, "d3", [
        ("fundamental", "基础的", "forming a necessary base or core", "基本的な", "きほんてきな"),
        ("comprehend", "理解", "grasp mentally; understand", "理解する", "りかいする"),
        ("distinguish", "区分", "recognize as different", "区別する", "くべつする"),
        ("discipline", "纪律", "practice of training people to obey rules", "規律", "きりつ"),
        ("capability", "能力", "the power or ability to do something", "能力", "のうりょく"),
        ("merit", "优点", "quality of being particularly good", "メリット", ""),
        ("contradict", "反驳", "deny the truth by asserting the opposite", "矛盾する", "むじゅんする"),
        ("regulation", "规定", "a rule or directive", "規制", "きせい"),
        ("execution", "执行", "the carrying out of a plan", "実行", "じっこう"),
        ("domain", "领域", "an area of territory owned or controlled", "領域", "りょういき"),
    ]),
]


def build_seed_groups(now: int) -> List[WordGroup]:
    groups = []
    for group_id, title, days_ago, word_prefix, entries in SEED_GROUPS:
        words = [
            Word(
                id=f"{word_prefix}-{n}",
                term=term,
                meaningCn=cn,
                meaningEn=en,
                meaningJp=jp,
                meaningJpReading=reading,
            )
            for n, (term, cn, en, jp, reading) in enumerate(entries, start=1)
        ]
        groups.append(WordGroup(
            id=group_id,
            title=title,
            createdAt=now - days_ago * DAY_MS,
            passed=False,
            words=words,
        ))
    return groups


def seed_if_missing(store: DocumentStore, clock: Callable[[], int] = now_ms) -> bool:
    """Write the seed list when the document file is absent; an existing file, even empty, wins"""
    with store.lock:
        if store.exists():
            return False
        groups = build_seed_groups(clock())
        store.write_all(groups)
    logger.info(f"Data file initialized with seed data: {store.data_path}")
    return True
