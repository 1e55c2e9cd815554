"""Comando `voxstream serve` — carrega o modelo e inicia o servidor HTTP."""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import TYPE_CHECKING

import click
from pydantic import ValidationError

from voxstream.cli.main import cli
from voxstream.config.settings import Settings
from voxstream.engine.model_store import ModelStore
from voxstream.exceptions import ConfigError, ModelError, ModelNotFoundError
from voxstream.logging import configure_logging, get_logger

if TYPE_CHECKING:
    import uvicorn

    from voxstream.engine.interface import SpeechEngine
    from voxstream.session.manager import StreamingSessionManager

logger = get_logger("cli.serve")


@cli.command()
@click.option("--host", default=None, help="Host para o servidor. [env: HOST, default: 127.0.0.1]")
@click.option("--port", default=None, type=int, help="Porta HTTP. [env: PORT, default: 6010]")
@click.option(
    "--model-path",
    default=None,
    help="Diretorio do modelo Vosk. [env: MODEL_PATH, default: model]",
)
@click.option(
    "--idle-timeout",
    default=None,
    type=float,
    help="Segundos sem audio antes de encerrar a sessao (0 desabilita).",
)
@click.option(
    "--flush-on-end/--no-flush-on-end",
    default=None,
    help="Emite o texto final do audio pendente quando o stream termina.",
)
@click.option(
    "--cors-origins",
    default=None,
    help="CORS origins (comma-separated). Ex: http://localhost:3000",
)
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default=None,
    help="Formato de log.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default=None,
    help="Nivel de log.",
)
def serve(
    host: str | None,
    port: int | None,
    model_path: str | None,
    idle_timeout: float | None,
    flush_on_end: bool | None,
    cors_origins: str | None,
    log_format: str | None,
    log_level: str | None,
) -> None:
    """Inicia o servidor de reconhecimento de fala em streaming."""
    try:
        settings = _resolve_settings(
            host=host,
            port=port,
            model_path=model_path,
            idle_timeout_s=idle_timeout,
            flush_on_end=flush_on_end,
            cors_origins=cors_origins,
            log_format=log_format,
            log_level=log_level,
        )
    except ConfigError as exc:
        click.echo(f"Erro: {exc}", err=True)
        sys.exit(1)

    configure_logging(log_format=settings.log_format, level=settings.log_level, force=True)

    # O modelo precisa existir antes de qualquer bind de porta.
    store = ModelStore(settings.model_path)
    try:
        store.ensure_present()
    except ModelNotFoundError:
        click.echo(f"Erro: {store.diagnostic()}", err=True)
        sys.exit(1)

    try:
        asyncio.run(_serve(settings, store))
    except ModelError as exc:
        click.echo(f"Erro: {exc}", err=True)
        sys.exit(1)


def _resolve_settings(**overrides: object) -> Settings:
    """Settings do ambiente com as opcoes de linha de comando aplicadas.

    Raises:
        ConfigError: Se o ambiente ou alguma opcao tiver valor invalido.
    """
    base = Settings.from_env()
    update = {key: value for key, value in overrides.items() if value is not None}
    if not update:
        return base
    try:
        return Settings.model_validate({**base.model_dump(), **update})
    except ValidationError as exc:
        raise ConfigError(f"Configuracao invalida: {exc}") from exc


async def _serve(settings: Settings, store: ModelStore) -> None:
    """Fluxo async principal do serve."""
    import uvicorn

    from voxstream.engine.vosk import VoskEngine
    from voxstream.server.app import create_app
    from voxstream.session.manager import StreamingSessionManager

    # 1. Carrega o modelo uma vez; todas as sessoes compartilham
    engine = VoskEngine()
    await engine.load(str(store.model_path))

    # 2. Create app
    manager = StreamingSessionManager.from_settings(engine, settings)
    app = create_app(session_manager=manager, cors_origins=settings.cors_origins)

    logger.info(
        "server_starting",
        host=settings.host,
        port=settings.port,
        model_path=str(store.model_path),
        idle_timeout_s=settings.idle_timeout,
        flush_on_end=settings.flush_on_end,
    )

    # 3. Setup shutdown
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _handle_signal(s: signal.Signals) -> None:
        logger.info("shutdown_signal", signal=s.name)
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _handle_signal, sig)

    # 4. Run uvicorn
    config = uvicorn.Config(app, host=settings.host, port=settings.port, log_level="warning")
    server = uvicorn.Server(config)

    server_task = asyncio.create_task(server.serve())

    # Wait for shutdown signal or server to stop
    _done, _ = await asyncio.wait(
        [server_task, asyncio.create_task(shutdown_event.wait())],
        return_when=asyncio.FIRST_COMPLETED,
    )

    # 5. Graceful shutdown
    await _shutdown(server, server_task, manager, engine)


async def _shutdown(
    server: uvicorn.Server,
    server_task: asyncio.Task[None],
    manager: StreamingSessionManager,
    engine: SpeechEngine,
) -> None:
    """Para de aceitar conexoes, encerra as sessoes e descarrega o modelo.

    Sessoes abertas terminam em FAILED. O segundo close_all cobre
    requests aceitas entre o pedido de saida e o fechamento do listener.
    """
    server.should_exit = True
    logger.info("closing_sessions", active=manager.active_sessions)
    await manager.close_all()

    if not server_task.done():
        await server_task
    await manager.close_all()

    await engine.unload()
    logger.info("server_stopped")
