# status: complete

from flask import Flask
from flask_cors import CORS
import os
import sys
import signal
import atexit

backend_dir = os.path.dirname(os.path.abspath(__file__))
sys.path.append(backend_dir)

from agents.execution.agent_loop import GUIAgent, informational_tools_predicate
from agents.tools.gui_ops.action_executor import ActionExecutor
from agents.tools.gui_ops.gui_tools import build_gui_registry
from chat.providers import create_provider
from route.agent_routes import register_agent_routes
from route.computer_use_route import register_computer_use_routes
from utils.cancellation_manager import CancellationManager
from utils.config import Config
from utils.logger import get_logger

logger = get_logger(__name__)

_shutdown_handled = False
_app_cancellations = None


def handle_shutdown(signum=None, frame=None):
    """Cancel in-flight agent requests so their loops stop at the next step"""
    global _shutdown_handled

    if _shutdown_handled:
        logger.debug("Shutdown handler already executed, skipping duplicate call")
        return

    _shutdown_handled = True

    logger.info("===== GUI AGENT SHUTDOWN INITIATED =====")

    if signum:
        logger.info(f"Received signal: {signum}")

    cancellations = _app_cancellations
    if cancellations is not None:
        active = cancellations.active_requests()
        for request_id in active:
            cancellations.cancel(request_id)
        logger.info(f"Cancelled {len(active)} in-flight request(s)")

    logger.info("===== GUI AGENT SHUTDOWN COMPLETED =====")

    if signum is not None:
        sys.exit(0)


def build_executor() -> ActionExecutor:
    from agents.tools.gui_ops.desktop import PyAutoGuiDesktop

    return ActionExecutor(PyAutoGuiDesktop(), sandbox_root=Config.get_file_sandbox_root())


def build_agent(executor: ActionExecutor) -> GUIAgent:
    vision_client = None
    analyser_url = Config.get_visual_analyser_url()
    if analyser_url:
        from agents.tools.vision_ops.visual_analyser import VisualAnalyserClient

        vision_client = VisualAnalyserClient(analyser_url, timeout=Config.get_visual_analyser_timeout())
    else:
        logger.info("VISUAL_ANALYSER_URL is empty, visual analysis tools disabled")

    registry = build_gui_registry(executor, vision_client)
    predicate = informational_tools_predicate(registry) if Config.get_return_informational_results() else None

    return GUIAgent(
        create_provider(),
        registry,
        max_iterations=Config.get_max_iterations(),
        final_answer_predicate=predicate,
    )


def create_app(agent: GUIAgent = None, executor: ActionExecutor = None,
               cancellations: CancellationManager = None):
    """Create and configure the Flask application"""
    global _app_cancellations

    app = Flask(__name__)

    CORS(app, origins=Config.get_cors_origins())

    if executor is None:
        executor = build_executor()
    if agent is None:
        agent = build_agent(executor)
    if cancellations is None:
        cancellations = CancellationManager()
    _app_cancellations = cancellations

    register_agent_routes(app, agent, cancellations)
    register_computer_use_routes(app, executor)

    logger.info(f"Agent ready with {len(agent.get_available_tools())} tools: {', '.join(agent.get_available_tools())}")
    return app


if __name__ == '__main__':
    app = create_app()

    atexit.register(handle_shutdown)
    signal.signal(signal.SIGTERM, handle_shutdown)
    signal.signal(signal.SIGINT, handle_shutdown)

    port = Config.get_port()
    logger.info(f"Starting GUI agent on 0.0.0.0:{port} (settings: {Config.get_defaults()})")

    app.run(
        host='0.0.0.0',
        port=port,
        debug=False,
        threaded=True
    )
