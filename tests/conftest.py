"""
测试配置和公共工具模块
为所有测试提供统一的配置、测试节点和电路构建工具
"""

import os
import sys
import tempfile
import shutil
import threading
import pytest
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

# 添加项目根目录到Python路径
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.node_interfaces import (
    ExecutableNode, NodeContext, NodeDescription, NodeResult, Port, PortType
)
from core.node_engine.circuit import Circuit, Node, create_circuit, create_edge, create_node_from_description
from core.node_engine.dag_scheduler import DAGScheduler, ExecutionListener
from core.node_engine.nodes import create_default_registry
from core.node_engine.registry import NodeRegistry

# 测试配置
TEST_CONFIG = {
    'timeout': 30,  # 测试超时时间（秒）
    'temp_dir_prefix': 'circuit_test_',
    'log_level': logging.WARNING,  # 测试时减少日志噪音
    'node_timeout': 0.3,  # 超时测试使用的节点超时（秒）
}


class TestEnvironment:
    """测试环境管理器"""

    def __init__(self):
        self.temp_dir = None
        self.original_log_level = None

    def setup(self):
        """设置测试环境"""
        self.temp_dir = tempfile.mkdtemp(prefix=TEST_CONFIG['temp_dir_prefix'])

        self.original_log_level = logging.getLogger().level
        logging.getLogger().setLevel(TEST_CONFIG['log_level'])

        return self

    def cleanup(self):
        """清理测试环境"""
        if self.temp_dir and os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir, ignore_errors=True)

        if self.original_log_level is not None:
            logging.getLogger().setLevel(self.original_log_level)

    def path(self, filename: str) -> str:
        """临时目录中的文件路径"""
        return os.path.join(self.temp_dir, filename)


# ---------------------------------------------------------------------------
# 测试节点
# ---------------------------------------------------------------------------

class ExplodingNode(ExecutableNode):
    """execute 直接抛出异常的节点"""

    KIND = "exploding"

    def describe(self) -> NodeDescription:
        return NodeDescription(
            kind=self.KIND,
            name="Exploding",
            inputs=[Port("value", PortType.ANY)],
            outputs=[Port("result", PortType.ANY)],
        )

    def execute(self, context: NodeContext) -> NodeResult:
        raise RuntimeError("boom")


class BlockingNode(ExecutableNode):
    """
    阻塞直到环境中的事件被触发的节点

    environment['release'] 为 threading.Event；environment['started'] 记录已开始的节点
    """

    KIND = "blocking"

    def describe(self) -> NodeDescription:
        return NodeDescription(
            kind=self.KIND,
            name="Blocking",
            inputs=[Port("value", PortType.ANY)],
            outputs=[Port("result", PortType.ANY)],
        )

    def execute(self, context: NodeContext) -> NodeResult:
        started = context.environment.get('started')
        if started is not None:
            started.append(context.node_id)
        context.environment['release'].wait(TEST_CONFIG['timeout'])
        return self._success(result=context.get_value("value", context.node_id))


class CallbackNode(ExecutableNode):
    """执行时调用 environment['callback'](context) 的节点"""

    KIND = "callback"

    def describe(self) -> NodeDescription:
        return NodeDescription(
            kind=self.KIND,
            name="Callback",
            inputs=[Port("value", PortType.ANY)],
            outputs=[Port("result", PortType.ANY)],
        )

    def execute(self, context: NodeContext) -> NodeResult:
        return self._success(result=context.environment['callback'](context))


class FlakyStepNode(ExecutableNode):
    """
    两步节点：第一步记录计数，第二步在首次尝试时失败

    environment['calls'] 统计每一步函数的真实调用次数
    """

    KIND = "flaky-steps"

    def describe(self) -> NodeDescription:
        return NodeDescription(
            kind=self.KIND,
            name="Flaky Steps",
            inputs=[Port("value", PortType.NUMBER, value=1)],
            outputs=[Port("result", PortType.NUMBER)],
            multi_step=True,
        )

    def execute(self, context: NodeContext) -> NodeResult:
        calls = context.environment['calls']

        def first():
            calls['first'] = calls.get('first', 0) + 1
            return context.get_value("value") * 10

        def second():
            calls['second'] = calls.get('second', 0) + 1
            if calls['second'] == 1:
                raise ValueError("transient failure")
            return base + 1

        base = context.step(first)
        return self._success(result=context.step(second))


class StepCallbackNode(ExecutableNode):
    """
    单步节点：在持久化步骤中调用 environment['callback'](context)

    environment['done'] 为可选的 threading.Event，执行结束（含异常）时触发
    """

    KIND = "step-callback"

    def describe(self) -> NodeDescription:
        return NodeDescription(
            kind=self.KIND,
            name="Step Callback",
            inputs=[Port("value", PortType.ANY)],
            outputs=[Port("result", PortType.ANY)],
            multi_step=True,
        )

    def execute(self, context: NodeContext) -> NodeResult:
        callback = context.environment['callback']
        try:
            return self._success(result=context.step(lambda: callback(context)))
        finally:
            done = context.environment.get('done')
            if done is not None:
                done.set()


class RecordingListener(ExecutionListener):
    """记录所有生命周期事件的监听器"""

    def __init__(self):
        self.events: List[tuple] = []
        self._lock = threading.Lock()

    def _add(self, *event):
        with self._lock:
            self.events.append(event)

    def on_run_start(self, run_id, circuit):
        self._add('run_start', run_id)

    def on_node_start(self, run_id, node_id):
        self._add('node_start', node_id)

    def on_node_complete(self, run_id, node_id, result):
        self._add('node_complete', node_id)

    def on_node_error(self, run_id, node_id, result):
        self._add('node_error', node_id)

    def on_node_skipped(self, run_id, node_id, result):
        self._add('node_skipped', node_id)

    def on_run_complete(self, result):
        self._add('run_complete', result.status.value)

    def names(self, kind: str) -> List[str]:
        return [event[1] for event in self.events if event[0] == kind]


TEST_NODES = [ExplodingNode, BlockingNode, CallbackNode, FlakyStepNode, StepCallbackNode]


def create_test_registry() -> NodeRegistry:
    """参考节点加测试节点的注册表"""
    registry = create_default_registry()
    for node_class in TEST_NODES:
        registry.register(node_class.KIND, node_class)
    return registry


def add_node(circuit: Circuit, registry: NodeRegistry, node_id: str, kind: str,
             values: Optional[Dict[str, Any]] = None) -> Node:
    """按节点描述向电路中添加节点"""
    description = registry.resolve(kind).create().describe()
    return circuit.add_node(create_node_from_description(node_id, description, values))


def connect(circuit: Circuit, source: str, source_output: str, target: str, target_input: str):
    """向电路中添加一条边"""
    return circuit.add_edge(create_edge(source, source_output, target, target_input))


def build_addition_circuit(registry: NodeRegistry) -> Circuit:
    """add(a=2, b=3) -> output"""
    circuit = create_circuit("addition-circuit", "Addition")
    add_node(circuit, registry, "add", "addition", {"a": 2, "b": 3})
    add_node(circuit, registry, "out", "output")
    connect(circuit, "add", "result", "out", "value")
    return circuit


@pytest.fixture
def test_env():
    """测试环境fixture"""
    env = TestEnvironment()
    env.setup()
    try:
        yield env
    finally:
        env.cleanup()


@pytest.fixture
def registry():
    """测试注册表fixture"""
    return create_test_registry()


@pytest.fixture
def scheduler(registry):
    """默认调度器fixture"""
    with DAGScheduler(registry, max_workers=4) as instance:
        yield instance
