"""
配置管理器模块
提供执行引擎配置的持久化存储、校验和加载功能
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.node_interfaces import CircuitEngineError
from utils.validation_schemas import get_validator

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class ConfigError(CircuitEngineError):
    """配置无效或无法使用"""
    pass


DEFAULT_CONFIG: Dict[str, Any] = {
    "scheduler": {
        "max_workers": 4,
        "node_timeout_seconds": None,
        "max_retries": 0,
        "max_memory_mb": 40.0
    },
    "ledger": {
        "backend": "memory",
        "db_path": "data/step_ledger.db"
    },
    "logging": {
        "level": "INFO",
        "file": None
    }
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """递归合并配置，override 中的值优先"""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """执行引擎配置管理器"""

    def __init__(self, config_file: str = "engine_config.json"):
        """
        初始化配置管理器

        Args:
            config_file: 配置文件名称，相对路径时保存在程序目录
        """
        self.config_file = os.path.join(os.path.dirname(os.path.dirname(__file__)), config_file)
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """从文件加载配置，缺失的字段使用默认值"""
        if os.path.exists(self.config_file):
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    config_data = json.load(f)

                if not isinstance(config_data, dict):
                    logger.warning(f"配置文件内容不是对象，使用默认配置: {self.config_file}")
                    return self._get_default_config()

                merged = _merge(self._get_default_config(), config_data)
                errors = self.validate_config(merged)
                if errors:
                    logger.warning(
                        f"配置文件结构无效，使用默认配置: {self.config_file}: {'; '.join(errors)}"
                    )
                    return self._get_default_config()
                return merged

            except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
                logger.warning(f"加载配置文件失败: {e}")

        return self._get_default_config()

    def validate_config(self, config: Optional[Dict[str, Any]] = None) -> List[str]:
        """
        使用 JSON Schema 校验配置

        Args:
            config: 要验证的配置字典，默认为当前配置

        Returns:
            错误信息列表（为空表示有效）
        """
        return get_validator().validate_engine_config(self.config if config is None else config)

    def _get_default_config(self) -> Dict[str, Any]:
        """获取默认配置"""
        return copy.deepcopy(DEFAULT_CONFIG)

    def save_config(self) -> bool:
        """保存配置到文件，配置无效时不写入"""
        errors = self.validate_config()
        if errors:
            logger.error(f"拒绝保存无效配置: {'; '.join(errors)}")
            return False

        try:
            os.makedirs(os.path.dirname(self.config_file), exist_ok=True)

            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(self.config, f, indent=2, ensure_ascii=False)
            return True
        except OSError as e:
            logger.error(f"保存配置文件失败: {e}")
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """获取配置项，支持 'scheduler.max_workers' 形式的点分路径"""
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """设置配置项"""
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def get_max_workers(self) -> int:
        """获取并发执行的最大工作线程数"""
        return self.get("scheduler.max_workers", 4)

    def get_node_timeout(self) -> Optional[float]:
        """获取单个节点的超时时间（秒），None 表示不限制"""
        return self.get("scheduler.node_timeout_seconds")

    def get_max_retries(self) -> int:
        """获取节点失败后的最大重试次数"""
        return self.get("scheduler.max_retries", 0)

    def get_max_memory_mb(self) -> float:
        """获取单个节点内存增长的告警阈值"""
        return float(self.get("scheduler.max_memory_mb", 40.0))

    def get_ledger_backend(self) -> str:
        """获取步骤账本的存储后端"""
        return self.get("ledger.backend", "memory")

    def get_ledger_path(self) -> str:
        """获取 SQLite 步骤账本路径，相对路径基于程序目录"""
        db_path = self.get("ledger.db_path", "data/step_ledger.db")
        return os.path.join(os.path.dirname(os.path.dirname(__file__)), db_path)

    def get_log_level(self) -> str:
        """获取日志级别"""
        return self.get("logging.level", "INFO")

    def get_log_file(self) -> Optional[str]:
        """获取日志文件路径"""
        return self.get("logging.file")

    def create_ledger_store(self):
        """
        根据配置创建步骤账本存储

        Returns:
            LedgerStore 实例

        Raises:
            ConfigError: 后端类型未知时
        """
        from core.node_engine.ledger_store import InMemoryLedgerStore, SqliteLedgerStore

        backend = self.get_ledger_backend()
        if backend == "memory":
            return InMemoryLedgerStore()
        if backend == "sqlite":
            return SqliteLedgerStore(self.get_ledger_path())
        raise ConfigError(f"未知的账本存储后端: {backend}")

    def configure_logging(self) -> None:
        """按当前配置初始化日志"""
        configure_logging(self.get_log_level(), self.get_log_file())


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    初始化日志：控制台输出，可选写入文件

    Args:
        level: 日志级别名称
        log_file: 日志文件路径，None 表示不写文件
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ConfigError(f"无效的日志级别: {level}")

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True
    )


# 全局配置管理器实例
_config_manager = None


def get_config_manager() -> ConfigManager:
    """获取全局配置管理器实例"""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager
