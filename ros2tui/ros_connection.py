"""ROS 2 graph access for the TUI: discovery, dynamic subscriptions and publishers."""

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from rclpy.callback_groups import ReentrantCallbackGroup
from rclpy.node import Node
from rclpy.qos import DurabilityPolicy, QoSProfile, ReliabilityPolicy
from rosidl_runtime_py.utilities import get_message

from ros2tui.config import QOS_DEPTH, load_config
from ros2tui.conversion import MessageConverter
from ros2tui.generic_message import GenericMessage, InterfaceType, MessageMetadata

MessageCallback = Callable[[GenericMessage, MessageMetadata], None]


class TransportError(ConnectionError):
    """A topic, type or endpoint could not be used."""


@dataclass(frozen=True)
class NodeId:
    name: str
    namespace: str

    @property
    def full_name(self) -> str:
        if self.namespace.endswith("/"):
            return self.namespace + self.name
        return f"{self.namespace}/{self.name}"


@dataclass
class NodeInfo:
    """Endpoints of one node, each mapping a name to its types."""

    node: NodeId
    publishers: Dict[str, List[str]] = field(default_factory=dict)
    subscribers: Dict[str, List[str]] = field(default_factory=dict)
    services: Dict[str, List[str]] = field(default_factory=dict)
    clients: Dict[str, List[str]] = field(default_factory=dict)

    def sections(self) -> List[Tuple[str, Dict[str, List[str]]]]:
        return [
            ("Publishers", self.publishers),
            ("Subscribers", self.subscribers),
            ("Services", self.services),
            ("Clients", self.clients),
        ]


class RosConnection(Node):
    """ROS2 node used by the TUI to talk to the graph."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__("ros2tui")

        self.config = config if config is not None else load_config()
        self.qos_depth = self.config["settings"].get("qos_depth", QOS_DEPTH)

        # Callback group for subscription callbacks
        self.cb_group = ReentrantCallbackGroup()

        self._converter = MessageConverter(get_message)
        self._converter_lock = threading.Lock()
        self._active_subscriptions: Dict[int, Any] = {}

        self.get_logger().info("ros2tui node started")

    # =========================================================================
    # Discovery
    # =========================================================================

    def list_topics(self) -> List[Tuple[str, str]]:
        """Return (name, type) of every topic, sorted by name."""
        topics = []
        for name, types in self.get_topic_names_and_types():
            topics.append((name, types[0] if types else ""))
        return sorted(topics)

    def list_nodes(self) -> List[NodeId]:
        nodes = [NodeId(name, ns) for name, ns in self.get_node_names_and_namespaces()]
        return sorted(nodes, key=lambda n: (n.namespace, n.name))

    def get_topic_type(self, topic: str) -> str:
        for name, types in self.get_topic_names_and_types():
            if name == topic and types:
                return types[0]
        raise TransportError(f"Topic '{topic}' not found")

    def node_info(self, node: NodeId) -> NodeInfo:
        """Return the publishers, subscribers, services and clients of one node."""
        info = NodeInfo(node)
        queries = [
            ("publishers", self.get_publisher_names_and_types_by_node),
            ("subscribers", self.get_subscriber_names_and_types_by_node),
            ("services", self.get_service_names_and_types_by_node),
            ("clients", self.get_client_names_and_types_by_node),
        ]
        for attr, query in queries:
            try:
                entries = query(node.name, node.namespace)
            except Exception as e:
                # Nodes can vanish between discovery and the query
                self.get_logger().debug(f"Failed to get {attr} for {node.full_name}: {e}")
                continue
            setattr(info, attr, {name: list(types) for name, types in entries})
        return info

    # =========================================================================
    # Subscriptions and Publishers
    # =========================================================================

    def _message_class(self, type_name: str) -> type:
        try:
            return get_message(str(InterfaceType.parse(type_name)))
        except (AttributeError, ModuleNotFoundError, ValueError) as e:
            raise TransportError(f"Failed to import message type {type_name}: {e}")

    def _decode(self, msg) -> GenericMessage:
        with self._converter_lock:
            return self._converter.to_generic(msg)

    def subscribe(self, topic: str, callback: MessageCallback, type_name: Optional[str] = None):
        """Subscribe to topic, delivering each sample as a GenericMessage.

        Returns the subscription handle to pass to unsubscribe().
        """
        if type_name is None:
            type_name = self.get_topic_type(topic)
        msg_class = self._message_class(type_name)

        # Best effort matches both reliable and best-effort publishers
        qos = QoSProfile(
            reliability=ReliabilityPolicy.BEST_EFFORT,
            durability=DurabilityPolicy.VOLATILE,
            depth=self.qos_depth,
        )

        def _on_message(msg):
            metadata = MessageMetadata(received_time=time.time())
            callback(self._decode(msg), metadata)

        subscription = self.create_subscription(
            msg_class, topic, _on_message, qos, callback_group=self.cb_group
        )
        self._active_subscriptions[id(subscription)] = subscription
        self.get_logger().info(f"Subscribed to {topic} ({type_name})")
        return subscription

    def unsubscribe(self, subscription):
        if self._active_subscriptions.pop(id(subscription), None) is not None:
            self.destroy_subscription(subscription)

    def create_generic_publisher(self, topic: str, type_name: str) -> Callable[[GenericMessage], None]:
        """Create a publisher on topic and return a function publishing trees."""
        msg_class = self._message_class(type_name)
        qos = QoSProfile(
            reliability=ReliabilityPolicy.RELIABLE,
            durability=DurabilityPolicy.TRANSIENT_LOCAL,
            depth=self.qos_depth,
        )
        try:
            publisher = self.create_publisher(msg_class, topic, qos)
        except Exception as e:
            raise TransportError(f"Failed to create publisher: {e}")
        self.get_logger().info(f"Publishing on {topic} ({type_name})")

        def publish(message: GenericMessage):
            with self._converter_lock:
                msg = self._converter.to_message(message, msg_class)
            publisher.publish(msg)

        return publish

    def message_template(self, type_name: str) -> GenericMessage:
        """Build a zero-valued tree for type_name, used as the publish-side message."""
        msg_class = self._message_class(type_name)
        with self._converter_lock:
            return self._converter.to_generic(msg_class())
