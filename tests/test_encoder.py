"""
Encoder wire format
───────────────────
1) plain data → baseline orjson text (no registry)
2) registry paths follow the real nesting, including after deep siblings
3) root-shape / reserved-key rules
"""
import datetime as dt
import sys
from collections import OrderedDict
from types import MappingProxyType

import numpy as np
import orjson
import pytest

from xjson_core import stringify, parse, XJSONEncoder, XJSONEncodeError, INVALID_DATE
from xjson_core.encoder import classify, SUBSTITUTERS


@pytest.mark.parametrize("value", [
    "hello world", 123, True, None, [], {}, {"hello": "world"},
    ["hello world", 123, True, None, [], {}],
    2**53 - 1, -(2**53 - 1),
])
def test_plain_data_is_baseline(value):
    assert stringify(value) == orjson.dumps(value).decode()


def test_tuple_and_ordered_dict_are_plain():
    assert stringify({"t": (1, 2), "o": OrderedDict(a=1)}) == '{"t":[1,2],"o":{"a":1}}'


def test_numpy_passthrough():
    assert stringify({"a": np.arange(3)}) == '{"a":[0,1,2]}'
    assert stringify({"a": np.int64(2**62)}) == '{"$x":{"n":[["a"]]},"a":"4611686018427387904"}'


def test_registry_paths():
    doc = {
        "a": {"b": [1, {"c": b"x"}, [dt.datetime(2020, 1, 1)]]},
        "d": b"y",
        "e": [{"f": {"g": [b"z"]}}, 1 << 60],
    }
    text = stringify(doc)
    registry = orjson.loads(text)["$x"]
    assert registry == {
        "B": [["a", "b", 1, "c"], ["d"], ["e", 0, "f", "g", 0]],
        "D": [["a", "b", 2, 0]],
        "n": [["e", 1]],
    }
    assert text.startswith('{"$x":')


def test_map_and_set_paths():
    text = stringify({"m": {1: "one", 2: frozenset({b"a"})}})
    assert text == (
        '{"$x":{"M":[["m"]],"S":[["m",1,1]],"B":[["m",1,1,0]]},'
        '"m":[[1,"one"],[2,["YQ=="]]]}'
    )


def test_date_text():
    assert stringify({"d": dt.datetime(2020, 1, 1)}) == '{"$x":{"D":[["d"]]},"d":"2020-01-01T00:00:00"}'
    assert stringify({"d": INVALID_DATE}) == '{"$x":{"D":[["d"]]},"d":"Invalid Date"}'


def test_bigint_boundary():
    limit = 2**53 - 1
    assert stringify({"obj": limit}) == f'{{"obj":{limit}}}'
    assert stringify({"obj": -limit}) == f'{{"obj":{-limit}}}'
    assert stringify({"obj": limit + 1}) == f'{{"$x":{{"n":[["obj"]]}},"obj":"{limit + 1}"}}'
    assert stringify({"obj": -limit - 1}) == f'{{"$x":{{"n":[["obj"]]}},"obj":"{-limit - 1}"}}'


def test_bigint_capability_off():
    enc = XJSONEncoder(bigint=False)
    assert enc.encode({"obj": 2**60}) == '{"obj":1152921504606846976}'
    with pytest.raises(XJSONEncodeError):
        enc.encode({"obj": 1 << 100})


def test_extended_root_requires_object():
    msg = 'encode() input must convert to an "object" when extended types are encoded.'
    with pytest.raises(XJSONEncodeError, match="must convert"):
        stringify(dt.datetime.now())
    with pytest.raises(XJSONEncodeError) as exc:
        stringify([dt.datetime.now()])
    assert str(exc.value) == msg
    with pytest.raises(XJSONEncodeError):
        stringify({1: "one"})
    stringify({"a": dt.datetime.now()})


def test_reserved_key():
    with pytest.raises(XJSONEncodeError, match='top-level "\\$x" property'):
        stringify({"$x": True})
    assert stringify({"a": {"$x": True}}) == '{"a":{"$x":true}}'


def test_encode_error_is_type_error():
    with pytest.raises(TypeError):
        stringify({"$x": 1})


def test_circular_reference():
    loop = []
    loop.append(loop)
    with pytest.raises(XJSONEncodeError, match="Circular"):
        stringify({"a": loop})


def test_shared_reference_is_not_circular():
    shared = [1, b"x"]
    text = stringify({"a": [shared, [shared]]})
    assert orjson.loads(text)["$x"] == {"B": [["a", 0, 1], ["a", 1, 0, 1]]}


def test_classify():
    assert classify(b"") == "B"
    assert classify(memoryview(b"x")) == "B"
    assert classify({1}) == "S"
    assert classify(MappingProxyType({"a": 1})) == "M"
    assert classify({1: 2}) == "M"
    assert classify({"a": 1}) is None
    assert classify(dt.datetime.now()) == "D"
    assert classify(True) is None
    assert classify(2**53) == "n"
    assert classify(2**53, bigint=False) is None
    assert classify(dt.date.today()) is None


def test_numpy_integer_tagged_in_range():
    assert stringify({"a": np.int64(5)}) == '{"$x":{"n":[["a"]]},"a":5}'
    assert stringify({"a": np.int64(5)}, bigint=False) == '{"a":5}'
    out = parse(stringify({"a": np.uint8(7)}))["a"]
    assert type(out) is int and out == 7


@pytest.mark.skipif(not hasattr(sys, "get_int_max_str_digits"), reason="no int digit limit")
def test_integer_over_digit_limit():
    with pytest.raises(XJSONEncodeError, match="too large"):
        stringify({"v": 10**5000})


def test_substituters_cover_every_tag():
    assert set(SUBSTITUTERS) == {"B", "D", "S", "M", "n"}


def test_deep_nesting_fails_cleanly():
    deep = b"x"
    for _ in range(200):
        deep = [deep]
    text = stringify({"a": deep})
    assert orjson.loads(text)["$x"] == {"B": [["a"] + [0] * 200]}

    deep = 1
    for _ in range(5000):
        deep = [deep]
    with pytest.raises(XJSONEncodeError):
        stringify({"a": deep})
