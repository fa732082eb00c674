import os
import logging

class Logger:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            # app.log lives at the project root, next to the run_*.py scripts
            project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
            os.makedirs(project_root, exist_ok=True)
            log_file_path = os.environ.get('CLUSTER_MAP_LOG_FILE', os.path.join(project_root, 'app.log'))

            logger = logging.getLogger("ClusterMapLogger")
            logger.setLevel(logging.INFO)
            if not logger.handlers:
                file_handler = logging.FileHandler(log_file_path, mode='a')
                formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
                file_handler.setFormatter(formatter)
                logger.addHandler(file_handler)
            cls._instance = logger
        return cls._instance

# Usage:
# logger = Logger()
# logger.info("Rendered 42 clusters")
