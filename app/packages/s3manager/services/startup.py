"""启动钩子：预先构建存储后端并输出连接信息。"""

from app.packages.s3manager.core.dependencies import get_backend
from app.packages.s3manager.core.exceptions import AppException
from app.packages.s3manager.core.logger import logger


def on_startup() -> None:
    try:
        backend = get_backend()
    except AppException as exc:
        # 配置缺失时仍允许服务启动，接口调用时会返回具体错误
        logger.warning("Storage backend not ready: %s", exc.detail)
        return
    logger.info("Storage backend ready: %s", backend.describe())
