import logging
import threading
from dataclasses import dataclass
from typing import Optional

from docker import DockerClient
from docker.models.containers import Container

from .common import random_string
from .config import HarnessConfig
from .wait import wait_for_endpoint, wait_for_node_started

LOCALSECRET_IMAGE = "ghcr.io/scrtlabs/localsecret"


class LoggingThread(threading.Thread):
    def __init__(
        self,
        terminate_thread_event: threading.Event,
        container: Container,
        logger: logging.Logger,
    ) -> None:
        super().__init__(daemon=True)
        self.terminate_thread_event = terminate_thread_event
        self.container = container
        self.logger = logger

    def run(self) -> None:
        containers_log_lines_generator = self.container.logs(stream=True, follow=True)
        try:
            while True:
                if self.terminate_thread_event.is_set():
                    break
                line = next(containers_log_lines_generator)
                s = line.decode("utf-8").rstrip()
                self.logger.info(f"  {self.container.name}: {s}")
        except StopIteration:
            pass


@dataclass
class LocalSecretConfig:
    """
    What is needed to start a single localsecret container.
    """

    docker_client: DockerClient
    docker_tag: str = "latest"
    rand_str: Optional[str] = None
    startup_timeout: int = 180
    mem_limit: str = "4G"
    lcd_port: int = 1317
    grpc_web_port: int = 9091
    rpc_port: int = 26657
    faucet_port: int = 5000

    def __post_init__(self):
        if self.rand_str is None:
            self.rand_str = random_string(5)


class LocalSecretNode:
    """
    A localsecret node (chain id secretdev-1, with faucet) running in docker.

    Use as a context manager; the container is removed on exit.
    """

    CHAIN_ID = "secretdev-1"
    LCD_PORT = 1317
    GRPC_WEB_PORT = 9091
    RPC_PORT = 26657
    FAUCET_PORT = 5000

    def __init__(self, config: LocalSecretConfig) -> None:
        self.config = config
        self.container = None
        self.terminate_background_logging_event = threading.Event()
        self.background_logging = None

    @property
    def image_name(self) -> str:
        return f"{LOCALSECRET_IMAGE}:{self.config.docker_tag}"

    @property
    def container_name(self) -> str:
        return f"localsecret-{self.config.rand_str}"

    @property
    def name(self) -> str:
        return self.container_name

    @property
    def lcd_url(self) -> str:
        return f"http://localhost:{self.config.lcd_port}"

    @property
    def rpc_url(self) -> str:
        return f"tcp://localhost:{self.config.rpc_port}"

    @property
    def grpc_web_url(self) -> str:
        return f"http://localhost:{self.config.grpc_web_port}"

    @property
    def faucet_url(self) -> str:
        return f"http://localhost:{self.config.faucet_port}/faucet"

    @property
    def ports(self) -> dict:
        return {
            f"{self.LCD_PORT}/tcp": self.config.lcd_port,
            f"{self.GRPC_WEB_PORT}/tcp": self.config.grpc_web_port,
            f"{self.RPC_PORT}/tcp": self.config.rpc_port,
            f"{self.FAUCET_PORT}/tcp": self.config.faucet_port,
        }

    def harness_config(self, **overrides) -> HarnessConfig:
        return HarnessConfig(
            endpoint=self.lcd_url,
            node_rpc=self.rpc_url,
            chain_id=self.CHAIN_ID,
            faucet_url=self.faucet_url,
        ).replace(**overrides)

    def _get_container(self) -> Container:
        return self.config.docker_client.containers.run(
            self.image_name,
            name=self.container_name,
            detach=True,
            ports=self.ports,
            mem_limit=self.config.mem_limit,
            hostname=self.container_name,
        )

    def _start_logging_thread(self):
        self.background_logging = LoggingThread(
            container=self.container,
            logger=logging.getLogger("peers"),
            terminate_thread_event=self.terminate_background_logging_event,
        )
        self.background_logging.start()

    def start(self) -> None:
        logging.info(f"Starting {self.image_name} as {self.container_name}")
        self.container = self._get_container()
        self._start_logging_thread()
        wait_for_node_started(self, self.config.startup_timeout)
        wait_for_endpoint(self.faucet_url, self.config.startup_timeout)

    def logs(self) -> str:
        return self.container.logs().decode("utf-8")

    def cleanup(self) -> None:
        if self.container:
            try:
                self.container.remove(force=True, v=True)
            except Exception as e:
                logging.warning(f"Error removing container {self.container_name}: {e}")
        # Terminate the logging after cleaning up containers.
        # Otherwise the thread may be locked waiting for another log line, rather than get
        # the StopIteration exception when the container shuts down.
        self.terminate_background_logging_event.set()
        if self.background_logging is not None:
            self.background_logging.join()

    def __enter__(self) -> "LocalSecretNode":
        try:
            self.start()
        except Exception:
            self.cleanup()
            raise
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.container_name}>"
