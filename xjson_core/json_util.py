import orjson


def dumps(o) -> str:
    return orjson.dumps(o, option=orjson.OPT_SERIALIZE_NUMPY).decode()


def loads(s):
    return orjson.loads(s)
