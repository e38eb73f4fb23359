"""
Identity Resolution

This module resolves the display name a client presents to the server.
A previously persisted name is reused; otherwise a new one is generated
by pairing a random adjective with a random proper noun and persisted.

Persistence uses a small JSON key-value file, the terminal counterpart of
browser local storage. The name never changes once set unless the
storage is cleared.

Usage:
    store = IdentityStore(Path("~/.webchat/storage.json").expanduser())
    username = get_or_generate_username(store)
"""

import json
import logging
import random
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

USERNAME_KEY = "chatUsername"

ADJECTIVES = (
    "admiring", "awesome", "blissful", "brave", "charming", "clever",
    "dazzling", "determined", "eager", "festive", "focused", "friendly",
    "gallant", "happy", "jolly", "kind", "lucid", "mystifying", "modest",
    "optimistic", "peaceful", "practical", "quirky", "quizzical", "relaxed",
    "serene", "silly", "stoic", "trusting", "upbeat", "vibrant", "wonderful",
)

NOUNS = (
    "albattani", "allen", "almeida", "agnesi", "archimedes", "ardinghelli",
    "aryabhata", "austin", "babbage", "banach", "bardeen", "bartik", "bassi",
    "beaver", "bell", "benz", "bhabha", "bhaskara", "blackwell", "bohr",
    "booth", "borg", "bose", "boyd", "brahmagupta", "brattain", "brown",
    "carson", "chandrasekhar", "shannon", "clarke", "colden", "cori", "cray",
    "curie", "darwin", "davinci", "dijkstra", "dubinsky", "easley", "edison",
    "einstein", "elion", "engelbart", "euclid", "euler", "fermat", "fermi",
    "feynman", "franklin", "galileo", "gates", "goldberg", "goldstine",
    "goldwasser", "golick", "goodall", "haibt", "hamilton", "hawking",
    "heisenberg", "hermann", "heyrovsky", "hodgkin", "hoover", "hopper",
    "hugle", "hypatia", "jang", "jennings", "jepsen", "joliot", "jones",
    "kalam", "kare", "keller", "kepler", "khayyam", "khorana", "kilby",
    "kirch", "knuth", "kowalevski", "lalande", "lamarr", "lamport", "leakey",
    "leavitt", "lewin", "lichterman", "liskov", "lovelace", "lumiere",
    "mahavira", "mayer", "mccarthy", "mcclintock", "mclean", "mcnulty",
    "meitner", "mendel", "mendeleev", "meninsky", "merkle", "mestorf",
    "minsky", "mirzakhani", "morse", "murdock", "neumann", "newton",
    "nightingale", "nobel", "noether", "northcutt", "noyce", "panini", "pare",
    "pasteur", "payne", "perlman", "pike", "poincare", "poitras", "ptolemy",
    "raman", "ramanujan", "ride", "ritchie", "roentgen", "rosalind", "saha",
    "sammet", "shaw", "shirley", "shockley", "sinoussi", "snyder", "spence",
    "stallman", "stonebraker", "swanson", "swartz", "swirles", "tesla",
    "thompson", "torvalds", "turing", "varahamihira", "visvesvaraya",
    "volhard", "wescoff", "wiles", "williams", "wilson", "wing", "wozniak",
    "wright", "yalow", "yonath",
)


def capitalize(word: str) -> str:
    """Upper-case the first character, leave the rest untouched."""
    return word[:1].upper() + word[1:]


def generate_username(rng: Optional[random.Random] = None) -> str:
    """
    Generate a random "Adjective Noun" display name.

    Args:
        rng: Random source (defaults to the module-level generator)

    Returns:
        Name such as "Brave Curie"
    """
    rng = rng or random
    adjective = ADJECTIVES[rng.randrange(len(ADJECTIVES))]
    noun = NOUNS[rng.randrange(len(NOUNS))]
    return f"{capitalize(adjective)} {capitalize(noun)}"


class IdentityStore:
    """
    Persistent key-value storage backed by a JSON file.

    The whole file is read on every access and rewritten on every change;
    it only ever holds a handful of keys.

    Attributes:
        path: Location of the JSON file
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable storage %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed storage %s", self.path)
            return {}
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def get(self, key: str) -> Optional[str]:
        """Return the stored value for key, or None."""
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        """Store value under key."""
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        """Delete key if present."""
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def clear(self) -> None:
        """Delete every stored key."""
        if self.path.exists():
            self.path.unlink()
            logger.info("Cleared storage %s", self.path)


def get_or_generate_username(
    store: IdentityStore, rng: Optional[random.Random] = None
) -> str:
    """
    Return the persisted display name, generating one on first use.

    Args:
        store: Persistent storage
        rng: Random source used when a new name is generated

    Returns:
        The stable display name for this storage
    """
    saved = store.get(USERNAME_KEY)
    if saved:
        return saved

    username = generate_username(rng)
    store.set(USERNAME_KEY, username)
    logger.info("Generated new username: %s", username)
    return username
