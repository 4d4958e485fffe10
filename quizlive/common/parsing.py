def parse_bool(value):
    """
    Strict boolean parsing for JSON and Socket.IO payloads.
    Accepts booleans, 0/1 and the strings "true"/"false"/"1"/"0";
    returns None for anything else.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in ('true', 'false', '1', '0'):
        return value.strip().lower() in ('true', '1')
    return None
