import os
import re
import time
import unicodedata

# 확장자 포함 최대 길이 (UTF-8 바이트). "{13자리 ms}-" 접두사를 붙여도 255바이트 이하
MAX_FILENAME_BYTES = 200
MAX_EXTENSION_BYTES = 32


def _truncate_utf8(text: str, max_bytes: int) -> str:
    # 잘린 멀티바이트 문자는 버림
    return text.encode('utf-8')[:max_bytes].decode('utf-8', errors='ignore')


def sanitize_filename(filename: str) -> str:
    """파일명 정규화 및 보안 처리 (경로 traversal 방지)"""
    if not filename:
        return "file"

    # 유니코드 정규화 (NFC)
    filename = unicodedata.normalize('NFC', filename)

    # 디렉터리 구성요소 제거 (/, \ 모두)
    filename = re.split(r'[/\\]', filename)[-1]

    # 제어 문자 및 위험한 문자 제거
    filename = re.sub(r'[\x00-\x1f\x7f]', '', filename)
    filename = re.sub(r'[<>:"|?*]', '', filename)

    name, ext = os.path.splitext(filename)
    name = re.sub(r'\.\.+', '.', name)  # 연속 점 제거
    name = re.sub(r'\s+', '_', name)
    name = re.sub(r'_+', '_', name)

    ext = _truncate_utf8(re.sub(r'\s+', '', ext), MAX_EXTENSION_BYTES)

    name = _truncate_utf8(name, MAX_FILENAME_BYTES - len(ext.encode('utf-8')))
    name = name.strip('._')
    if not name:
        name = "file"

    return f"{name}{ext}"


def generate_storage_key(original_name: str) -> str:
    """저장 키 생성: {epochMillis}-{안전한 파일명}"""
    return f"{int(time.time() * 1000)}-{sanitize_filename(original_name)}"
