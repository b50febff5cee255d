"""
配置管理器模块单元测试
测试utils/config_manager.py的配置持久化、校验和日志初始化功能
"""

import pytest
import sys
import os
import json
import logging

# 添加项目路径
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from tests.conftest import build_addition_circuit, create_test_registry


class TestConfigManager:
    """测试配置管理器基本功能"""

    def test_default_config_structure(self, test_env):
        """测试默认配置结构"""
        from utils.config_manager import ConfigManager

        manager = ConfigManager(test_env.path('missing_config.json'))

        config = manager.config
        assert set(config) == {'scheduler', 'ledger', 'logging'}
        assert manager.get_max_workers() == 4
        assert manager.get_node_timeout() is None
        assert manager.get_max_retries() == 0
        assert manager.get_max_memory_mb() == 40.0
        assert manager.get_ledger_backend() == 'memory'
        assert manager.get_log_level() == 'INFO'
        assert manager.get_log_file() is None
        assert manager.validate_config() == []

    def test_save_and_load_config(self, test_env):
        """测试配置保存和加载"""
        from utils.config_manager import ConfigManager

        config_file = test_env.path('save_load_test.json')

        manager1 = ConfigManager(config_file)
        manager1.set('scheduler.max_workers', 8)
        manager1.set('scheduler.node_timeout_seconds', 2.5)
        manager1.set('ledger.backend', 'sqlite')

        assert manager1.save_config() == True

        manager2 = ConfigManager(config_file)

        assert manager2.get_max_workers() == 8
        assert manager2.get_node_timeout() == 2.5
        assert manager2.get_ledger_backend() == 'sqlite'

    def test_partial_config_is_merged_with_defaults(self, test_env):
        """测试部分配置与默认值合并"""
        from utils.config_manager import ConfigManager

        config_file = test_env.path('partial.json')
        with open(config_file, 'w', encoding='utf-8') as f:
            json.dump({'scheduler': {'max_retries': 2}}, f)

        manager = ConfigManager(config_file)

        assert manager.get_max_retries() == 2
        assert manager.get_max_workers() == 4
        assert manager.get('ledger.db_path') == 'data/step_ledger.db'

    @pytest.mark.parametrize("content", [
        json.dumps({'scheduler': {'max_workers': 0}}),
        json.dumps({'ledger': {'backend': 'redis'}}),
        json.dumps({'unexpected': True}),
        json.dumps([1, 2, 3]),
        '{broken json',
    ])
    def test_invalid_config_falls_back_to_defaults(self, test_env, content):
        """测试无效配置回退到默认配置"""
        from utils.config_manager import ConfigManager, DEFAULT_CONFIG

        config_file = test_env.path('invalid.json')
        with open(config_file, 'w', encoding='utf-8') as f:
            f.write(content)

        manager = ConfigManager(config_file)

        assert manager.config == DEFAULT_CONFIG

    def test_invalid_config_is_not_saved(self, test_env):
        """测试无效配置不会被保存"""
        from utils.config_manager import ConfigManager

        config_file = test_env.path('reject.json')
        manager = ConfigManager(config_file)
        manager.set('scheduler.max_workers', -1)

        assert manager.save_config() == False
        assert not os.path.exists(config_file)

    def test_get_with_default(self, test_env):
        """测试点分路径获取"""
        from utils.config_manager import ConfigManager

        manager = ConfigManager(test_env.path('get.json'))

        assert manager.get('scheduler.max_workers') == 4
        assert manager.get('scheduler.missing', 'fallback') == 'fallback'
        assert manager.get('nothing.here') is None


class TestLedgerStoreCreation:
    """测试账本存储创建"""

    def test_memory_backend(self, test_env):
        from utils.config_manager import ConfigManager
        from core.node_engine.ledger_store import InMemoryLedgerStore

        manager = ConfigManager(test_env.path('memory.json'))

        assert isinstance(manager.create_ledger_store(), InMemoryLedgerStore)

    def test_sqlite_backend(self, test_env):
        from utils.config_manager import ConfigManager
        from core.node_engine.ledger_store import SqliteLedgerStore

        manager = ConfigManager(test_env.path('sqlite.json'))
        manager.set('ledger.backend', 'sqlite')
        manager.set('ledger.db_path', test_env.path('ledger.db'))

        store = manager.create_ledger_store()

        assert isinstance(store, SqliteLedgerStore)
        assert os.path.exists(test_env.path('ledger.db'))

    def test_unknown_backend(self, test_env):
        from utils.config_manager import ConfigError, ConfigManager

        manager = ConfigManager(test_env.path('unknown.json'))
        manager.set('ledger.backend', 'redis')

        with pytest.raises(ConfigError):
            manager.create_ledger_store()


class TestSchedulerFromConfig:
    """测试从配置创建调度器"""

    def test_from_config(self, test_env):
        from utils.config_manager import ConfigManager
        from core.node_engine.dag_scheduler import DAGScheduler, RunStatus

        manager = ConfigManager(test_env.path('scheduler.json'))
        manager.set('scheduler.max_workers', 2)
        manager.set('scheduler.max_retries', 1)

        registry = create_test_registry()
        with DAGScheduler.from_config(registry, manager) as scheduler:
            assert scheduler.max_workers == 2
            assert scheduler.max_retries == 1
            assert scheduler.node_timeout is None
            result = scheduler.run(build_addition_circuit(registry))

        assert result.status is RunStatus.COMPLETED


class TestConfigureLogging:
    """测试日志初始化"""

    def test_file_handler(self, test_env):
        from utils.config_manager import configure_logging

        log_file = test_env.path(os.path.join('logs', 'engine.log'))
        root = logging.getLogger()
        original_handlers = root.handlers[:]
        original_level = root.level
        try:
            configure_logging('DEBUG', log_file)
            logging.getLogger('circuit.test').debug('日志测试')
            for handler in root.handlers:
                handler.flush()

            with open(log_file, encoding='utf-8') as f:
                content = f.read()
            assert 'circuit.test - DEBUG - 日志测试' in content
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers = original_handlers
            root.setLevel(original_level)

    def test_invalid_level(self):
        from utils.config_manager import ConfigError, configure_logging

        with pytest.raises(ConfigError):
            configure_logging('LOUD')


if __name__ == "__main__":
    pytest.main([__file__])
