"""python -m wecom_reminder.gateway -- 启动 HTTP 服务（HOST / PORT 环境变量）"""

import os

import uvicorn

from .main import create_app


def main() -> None:
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "3000"))
    uvicorn.run(create_app(), host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
