"""常量定义：HTTP 状态码与临时直链相关的默认值。"""

from fastapi import status

HTTP_STATUS_OK = status.HTTP_200_OK
HTTP_STATUS_BAD_REQUEST = status.HTTP_400_BAD_REQUEST
HTTP_STATUS_UNAUTHORIZED = status.HTTP_401_UNAUTHORIZED
HTTP_STATUS_NOT_FOUND = status.HTTP_404_NOT_FOUND
HTTP_STATUS_BAD_GATEWAY = status.HTTP_502_BAD_GATEWAY

# 预签名链接有效期（秒）：默认 1 小时，最长 7 天
PRESIGN_DEFAULT_EXPIRES = 3600
PRESIGN_MAX_EXPIRES = 604800

# 本地后端签名令牌用途标记
PRESIGN_TOKEN_PURPOSE = "object_download"

SEARCH_DEFAULT_LIMIT = 50
SEARCH_MAX_LIMIT = 500
