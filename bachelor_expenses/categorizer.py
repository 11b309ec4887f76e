# bachelor_expenses/categorizer.py
"""
RULE-BASED CATEGORIZER
- Ordered (keywords, category) rules, first match wins
- Exact word / phrase hits first, then a fuzzy pass for typos
- Rules and default categories are plain data so they can be edited freely
"""

import re
from difflib import get_close_matches

DEFAULT_CATEGORY = "Uncategorized"

DEFAULT_CATEGORIES = [
    'Rent', 'EMI', 'Wifi', 'Recharge', 'Groceries', 'Snacks', 'Gym', 'Help',
    'Public Transport', 'Fuel', 'Vehicle Maintenance', 'Tea/Coffee', 'Dinner',
    'Lunch', 'Breakfast', 'Clothing', 'Movies', 'Sports', 'Medicine', 'Eggs',
    'HouseHold Things', 'Split', 'Cash ATM', 'Invest', 'Settle'
]

# Order matters: more specific rules sit above generic ones
# ("egg" before "groceries", "petrol pump" before "bus").
CATEGORY_RULES = [
    ({"settlement", "settle", "settled"}, "Settle"),
    ({"rent", "landlord", "pg", "hostel"}, "Rent"),
    ({"emi", "loan", "instalment", "installment"}, "EMI"),
    ({"wifi", "broadband", "internet", "airtel fiber", "jiofiber"}, "Wifi"),
    ({"recharge", "prepaid", "postpaid", "mobile plan"}, "Recharge"),
    ({"egg", "eggs"}, "Eggs"),
    ({"grocery", "groceries", "vegetables", "fruits", "milk", "bigbasket", "blinkit", "zepto", "dmart"}, "Groceries"),
    ({"chips", "snack", "snacks", "biscuits", "namkeen", "chocolate"}, "Snacks"),
    ({"gym", "fitness", "workout", "protein"}, "Gym"),
    ({"maid", "cook", "cleaning", "househelp", "help"}, "Help"),
    ({"petrol", "diesel", "fuel", "petrol pump"}, "Fuel"),
    ({"service", "servicing", "tyre", "puncture", "mechanic", "car wash"}, "Vehicle Maintenance"),
    ({"metro", "bus", "train", "auto", "cab", "uber", "ola", "rapido"}, "Public Transport"),
    ({"tea", "coffee", "chai", "starbucks", "cafe"}, "Tea/Coffee"),
    ({"breakfast", "poha", "idli", "dosa"}, "Breakfast"),
    ({"lunch", "thali", "canteen"}, "Lunch"),
    ({"dinner", "zomato", "swiggy", "pizza", "biryani", "restaurant"}, "Dinner"),
    ({"shirt", "jeans", "shoes", "clothes", "clothing", "myntra"}, "Clothing"),
    ({"movie", "movies", "cinema", "pvr", "inox", "bookmyshow", "netflix"}, "Movies"),
    ({"cricket", "football", "badminton", "turf", "sports"}, "Sports"),
    ({"medicine", "pharmacy", "doctor", "tablets", "apollo", "chemist"}, "Medicine"),
    ({"bucket", "detergent", "utensils", "mop", "household", "bulb"}, "HouseHold Things"),
    ({"atm", "cash withdrawal", "withdraw"}, "Cash ATM"),
    ({"sip", "mutual fund", "stocks", "invest", "investment", "zerodha", "groww"}, "Invest"),
    ({"split", "splitwise"}, "Split"),
]


def _tokens(text):
    return re.findall(r"[a-z0-9]+", text.lower())


class RuleCategorizer:
    def __init__(self, rules=None, default=DEFAULT_CATEGORY, fuzzy_cutoff=0.85):
        self.rules = list(rules if rules is not None else CATEGORY_RULES)
        self.default = default
        self.fuzzy_cutoff = fuzzy_cutoff

    def _exact_match(self, description_lower, tokens):
        for keywords, category in self.rules:
            for keyword in keywords:
                if " " in keyword:
                    if keyword in description_lower:
                        return category
                elif keyword in tokens:
                    return category
        return None

    def _fuzzy_match(self, tokens):
        for keywords, category in self.rules:
            single_words = [k for k in keywords if " " not in k and len(k) > 3]
            for token in tokens:
                if len(token) > 3 and get_close_matches(token, single_words, n=1, cutoff=self.fuzzy_cutoff):
                    return category
        return None

    def categorize(self, description):
        """
        Returns: (category, confidence) where confidence is "high" for an exact
        keyword hit, "low" for a fuzzy hit and "none" for the default.
        """
        if not description or len(description.strip()) < 2:
            return self.default, "none"

        description_lower = description.lower()
        tokens = set(_tokens(description))

        category = self._exact_match(description_lower, tokens)
        if category:
            return category, "high"

        category = self._fuzzy_match(tokens)
        if category:
            return category, "low"

        return self.default, "none"


class CategorySet:
    """User-editable set of suggested categories, insertion ordered."""

    def __init__(self, names=None):
        self._names = []
        for name in (names if names is not None else DEFAULT_CATEGORIES):
            self.add(name)

    def add(self, name):
        name = (name or "").strip()
        if not name:
            raise ValueError("Category name required")
        if self.find(name) is None:
            self._names.append(name)
            return True
        return False

    def remove(self, name):
        existing = self.find(name)
        if existing is None:
            return False
        self._names.remove(existing)
        return True

    def find(self, name):
        """Case-insensitive lookup returning the stored spelling."""
        wanted = (name or "").strip().lower()
        for existing in self._names:
            if existing.lower() == wanted:
                return existing
        return None

    def normalize(self, name):
        """Map a category to its stored spelling; unknown categories are kept as typed."""
        name = (name or "").strip()
        if not name:
            return DEFAULT_CATEGORY
        return self.find(name) or name

    def __contains__(self, name):
        return self.find(name) is not None

    def __iter__(self):
        return iter(self._names)

    def __len__(self):
        return len(self._names)

    def to_list(self):
        return list(self._names)


# Global instance for easy import
rule_categorizer = RuleCategorizer()


def categorize(description: str):
    """
    Main categorization function for external use
    Returns: (category, confidence)
    """
    return rule_categorizer.categorize(description)
