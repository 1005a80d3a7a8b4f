"""xjson 기본 코덱 파라미터"""
import os

CODEC_CONFIG = {
    # 환경변수로 big-int 지원 여부 제어 (import 시 1회 읽음)
    "bigint": os.environ.get("XJSON_BIGINT", "true").lower() == "true",
    "max_safe_integer": 2**53 - 1,   # IEEE-754 double 로 정확히 표현되는 최대 정수
}
