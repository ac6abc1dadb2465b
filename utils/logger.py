import logging
from typing import Dict, Any


def setup_logger(cfg: Dict[str, Any]) -> None:
    """根據給定設定初始化 logging 系統。

    接受完整配置字典（讀取 system 區段）或直接傳入 system 區段。
    """
    system_cfg = cfg["system"] if isinstance(cfg.get("system"), dict) else cfg
    log_level = getattr(logging, str(system_cfg.get("log_level", "INFO")).upper(), logging.INFO)
    log_format = system_cfg.get("log_format", "%(asctime)s %(levelname)s %(name)s: %(message)s")

    # 移除既有 handler，避免其他套件影響
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    logging.basicConfig(level=log_level, format=log_format, force=True)

    # 調整第三方 logger 水位，減少雜訊
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    logging.info("Logger initialized → level: %s", logging.getLevelName(log_level))
