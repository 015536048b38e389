"""
Suggest a corrected address for common email-domain typos (gamil.com etc).
"""

COMMON_DOMAINS = [
    'gmail.com',
    'yahoo.com',
    'outlook.com',
    'hotmail.com',
    'icloud.com',
    'live.com',
    'rediffmail.com',
    'proton.me',
    'protonmail.com',
    'aol.com',
]

DOMAIN_SYNONYMS = {
    'gamil.com': 'gmail.com',
    'gmial.com': 'gmail.com',
    'gnail.com': 'gmail.com',
    'gmaill.com': 'gmail.com',
    'gmal.com': 'gmail.com',
    'yaho.com': 'yahoo.com',
    'yahho.com': 'yahoo.com',
    'hotnail.com': 'hotmail.com',
    'homail.com': 'hotmail.com',
    'outllok.com': 'outlook.com',
    'outook.com': 'outlook.com',
    'icloud.co': 'icloud.com',
    'redifmail.com': 'rediffmail.com',
}

MAX_SUGGESTION_DISTANCE = 2


def levenshtein(a, b):
    if a == b:
        return 0
    if not a or not b:
        return len(a or b)
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def suggest_email_correction(email):
    """Return a corrected email, or None when the domain looks fine."""
    if not email or '@' not in email:
        return None
    local_part, _, domain = email.rpartition('@')
    domain = domain.lower()
    if not domain:
        return None

    if domain in DOMAIN_SYNONYMS:
        return f'{local_part}@{DOMAIN_SYNONYMS[domain]}'

    closest = min(COMMON_DOMAINS, key=lambda candidate: levenshtein(domain, candidate))
    distance = levenshtein(domain, closest)
    if 0 < distance <= MAX_SUGGESTION_DISTANCE:
        return f'{local_part}@{closest}'
    return None
