from .canon import canonicalize, unsupported_characters, is_canonical, Substitution
