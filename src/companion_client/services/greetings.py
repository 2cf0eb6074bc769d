"""
Time-of-day greetings shown when a character is opened.

Character-specific pools take precedence over the common pool. The chosen
greeting is cached per character under the identity-scoped greeting cache
key, so the same line is shown until the time of day moves to another
category.
"""

import logging
import random
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional

from ..core.storage import KeyValueStore, StorageKeys

logger = logging.getLogger(__name__)

FALLBACK_GREETING = "Hello"
COMMON_CACHE_KEY = "_common"


class TimeCategory(Enum):
    """Parts of the day with their own greetings."""
    MORNING = "morning"
    NOON = "noon"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"
    DEFAULT = "default"


GreetingSet = Dict[TimeCategory, List[str]]

COMMON_GREETINGS: GreetingSet = {
    TimeCategory.MORNING: [
        "Good morning! Let's make today a great one.",
        "Up this early? Is something on your mind?",
        "Morning. Seeing you brightens my whole day.",
    ],
    TimeCategory.NOON: [
        "Good afternoon. Remember to eat lunch on time.",
        "Who's awake at noon? Oh, it's you.",
        "Want some company for a lazy lunch break?",
    ],
    TimeCategory.AFTERNOON: [
        "Good afternoon. Tired from work or study?",
        "A cup of tea and me. It doesn't get better than that.",
    ],
    TimeCategory.EVENING: [
        "Good evening. How was your day?",
        "Night is falling. Will you tell me about your day?",
        "Long day? Take a moment to relax.",
    ],
    TimeCategory.NIGHT: [
        "It's late. Why aren't you asleep yet?",
        "Can't sleep? I'm right here with you.",
        "Good night. Sweet dreams.",
    ],
    TimeCategory.DEFAULT: [
        "Hi, it's good to see you.",
        "I'm so happy to see you.",
        "Why so quiet? Didn't you see me?",
    ],
}

CHARACTER_GREETINGS: Dict[str, GreetingSet] = {
    "qiyu": {
        TimeCategory.MORNING: [
            "Morning. Did you sleep well?",
            "Up early. Looking forward to something?",
            "A new day has started, and I'll be here all of it.",
        ],
        TimeCategory.NOON: [
            "Time for lunch. Take care of yourself.",
            "It's noon. Want to rest for a while?",
        ],
        TimeCategory.AFTERNOON: [
            "Afternoon already. Did you miss me?",
            "A good hour for daydreaming, isn't it?",
        ],
        TimeCategory.EVENING: [
            "Good evening. Anything you want to tell me?",
            "The night is beautiful, like your eyes right now.",
        ],
        TimeCategory.NIGHT: [
            "Still up this late? Let me keep you company.",
            "It's late. Something on your mind? I'm listening.",
            "Good night. See you in your dreams.",
        ],
        TimeCategory.DEFAULT: [
            "You're here. I've been waiting a long time.",
            "It's good to see you.",
        ],
    },
}


def time_category(hour: int) -> TimeCategory:
    """Map an hour of the day (0-23) to its greeting category."""
    if 5 <= hour < 11:
        return TimeCategory.MORNING
    if 11 <= hour < 14:
        return TimeCategory.NOON
    if 14 <= hour < 18:
        return TimeCategory.AFTERNOON
    if 18 <= hour < 23:
        return TimeCategory.EVENING
    return TimeCategory.NIGHT


class GreetingSelector:
    """Picks and caches greetings."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] = datetime.now,
        rng: Optional[random.Random] = None,
        common: Optional[GreetingSet] = None,
        characters: Optional[Dict[str, GreetingSet]] = None,
    ):
        self.store = store
        self.clock = clock
        self.rng = rng or random.Random()
        self.common = common if common is not None else COMMON_GREETINGS
        self.characters = characters if characters is not None else CHARACTER_GREETINGS

    def pick(self, character_key: Optional[str], category: TimeCategory) -> str:
        """Pick a random greeting without consulting the cache."""
        pool = self.characters.get(character_key) if character_key else None
        if pool:
            if pool.get(category):
                return self.rng.choice(pool[category])
            if pool.get(TimeCategory.DEFAULT):
                return self.rng.choice(pool[TimeCategory.DEFAULT])

        if self.common.get(category):
            return self.rng.choice(self.common[category])
        return self.rng.choice(self.common.get(TimeCategory.DEFAULT) or [FALLBACK_GREETING])

    def get_greeting(self, character_key: Optional[str] = None) -> str:
        """
        Get the greeting for a character at the current time.

        Returns the cached greeting when one was chosen for the same
        character in the current time category.
        """
        category = time_category(self.clock().hour)
        cache_key = character_key or COMMON_CACHE_KEY

        cache = self.store.get(StorageKeys.GREETING_CACHE)
        if not isinstance(cache, dict):
            cache = {}

        entry = cache.get(cache_key)
        if isinstance(entry, dict) and entry.get("category") == category.value and entry.get("greeting"):
            return entry["greeting"]

        greeting = self.pick(character_key, category)
        cache[cache_key] = {"category": category.value, "greeting": greeting}
        try:
            self.store.set(StorageKeys.GREETING_CACHE, cache)
        except Exception as e:
            logger.warning(f"Failed to cache greeting: {e}")
        return greeting
