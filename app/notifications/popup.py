def popup(message: str, level: str = "success") -> dict:
    return {"popup": {"message": message, "level": level}}
