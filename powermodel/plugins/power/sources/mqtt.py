"""
MQTT fact source.

Subscribes to the topic on which the reasoning collaborator publishes the
power facts after each ontology (re)load.
"""

import json
import logging
from typing import Dict, Any
import paho.mqtt.client as mqtt

from powermodel.plugins.power.models import FactParseError
from powermodel.plugins.power.sources.base import FactSource
from powermodel.plugins.power.normalizer import FactNormalizer

logger = logging.getLogger(__name__)


class MqttFactSource(FactSource):
    """
    MQTT fact source.

    Subscribes to:
    - <root_topic>/facts (complete fact set, one JSON document per reload)
    """

    def __init__(self, name: str, config: Dict[str, Any]):
        super().__init__(name, config)

        self.host = config.get("host", "localhost")
        self.port = config.get("port", 1883)
        self.username = config.get("username")
        self.password = config.get("password")
        self.root_topic = config.get("root_topic", "powermodel")
        self.qos = config.get("qos", 1)

        self._client: mqtt.Client | None = None
        self._connected = False

    @property
    def facts_topic(self) -> str:
        return f"{self.root_topic}/facts"

    def start(self) -> None:
        """Start MQTT client and subscribe to the facts topic."""
        from powermodel.power_logging import get_logger
        log = get_logger("POWERMODEL.Source")

        logger.info(f"Starting MQTT fact source: {self.host}:{self.port}")
        log.info("POWERMODEL.Source.Connecting", extra={"fields": {"host": self.host, "port": self.port}})

        self._client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=f"powermodel-facts-{self.name}",
        )

        if self.username:
            self._client.username_pw_set(self.username, self.password)

        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message = self._on_message

        try:
            self._client.connect(self.host, self.port, keepalive=60)
            self._client.loop_start()
            logger.info("MQTT fact client started")

        except Exception as e:
            log.error("POWERMODEL.Source.ConnectionFailed", extra={"fields": {
                "host": self.host,
                "port": self.port,
                "error": str(e)
            }})
            raise

    def stop(self) -> None:
        """Stop MQTT client."""
        logger.info("Stopping MQTT fact source")

        if self._client:
            self._client.loop_stop()
            self._client.disconnect()
            self._client = None

        self._connected = False
        logger.info("MQTT fact source stopped")

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Handle MQTT connection."""
        from powermodel.power_logging import get_logger
        log = get_logger("POWERMODEL.Source")

        if reason_code == 0:
            logger.info("Connected to MQTT broker")
            self._connected = True

            client.subscribe(self.facts_topic, qos=self.qos)
            log.info("POWERMODEL.Source.Subscribed", extra={"fields": {"topic": self.facts_topic}})

        else:
            log.error("POWERMODEL.Source.ConnectionFailed", extra={"fields": {
                "host": self.host,
                "port": self.port,
                "reason_code": str(reason_code)
            }})
            self._connected = False

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        """Handle MQTT disconnection."""
        from powermodel.power_logging import get_logger
        log = get_logger("POWERMODEL.Source")

        self._connected = False
        if reason_code != 0:
            log.warning("POWERMODEL.Source.UnexpectedDisconnection", extra={"fields": {
                "reason_code": str(reason_code)
            }})
        else:
            logger.info("Disconnected from MQTT broker")

    def _on_message(self, client, userdata, msg):
        """Handle incoming MQTT message."""
        topic = msg.topic

        if topic != self.facts_topic:
            logger.debug(f"Ignoring unknown topic: {topic}")
            return

        try:
            payload = json.loads(msg.payload.decode("utf-8"))
            facts = FactNormalizer.normalize_facts(payload)
            logger.info(f"Received {len(facts)} facts on {topic}")
            self._on_facts_loaded(facts)

        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            from powermodel.power_logging import get_logger
            log = get_logger("POWERMODEL.Source")
            log.error("POWERMODEL.Source.InvalidJSON", extra={"fields": {
                "topic": topic,
                "error": str(e)
            }})
        except FactParseError as e:
            # Dropped: the current store stays in place
            from powermodel.power_logging import get_logger
            log = get_logger("POWERMODEL.Source")
            log.error("POWERMODEL.Source.InvalidPayload", extra={"fields": {
                "topic": topic,
                "error": str(e)
            }})
        except Exception as e:
            from powermodel.power_logging import get_logger
            log = get_logger("POWERMODEL.Source")
            log.error("POWERMODEL.Source.MessageProcessingError", extra={"fields": {
                "topic": topic,
                "error": str(e)
            }})

    @property
    def is_connected(self) -> bool:
        """Check if MQTT client is connected."""
        return self._connected
