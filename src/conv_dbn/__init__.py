from pathlib import Path
import json
from conv_dbn.utils.custom_logger import get_logger

code_root = Path(__file__).parent
cfg_path = code_root.joinpath("cfgs")
launch_cfg:dict = json.loads(cfg_path.joinpath("kernel_launch.json").read_text())
root_info_logger = get_logger(__name__,"project info",level=launch_cfg["log_level"]).info
root_error_logger = get_logger(__name__,"project error",level="ERROR").error
