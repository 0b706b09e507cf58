"""Init command: write a default mdboard.yml."""

import logging
from pathlib import Path

import yaml

from ..models.config import MdboardConfig
from ..services.config_service import CONFIG_FILE
from .output import error, info, success

logger = logging.getLogger(__name__)

CONFIG_HEADER = """\
# mdboard configuration
#
# project:
#   project_url: https://github.com/users/<owner>/projects/<number>
#   (or project_id: PVT_... to skip the lookup)
#   base_url: API host, change for GitHub Enterprise
#
# sync:
#   policy: create-only (add missing items) or full-sync (also update matches)
#   default_status: status of stories outside any recognized section
#   status_aliases: heading substring -> status, checked in order
#   keep_custom_status: keep unrecognized headings as the status verbatim
#   story_id_field: free-text project field holding the story id
#   stories_dir: where push reads and pull writes story files

"""


def generate_config_yaml(project_url: str | None = None) -> str:
    """Generate YAML config from the default MdboardConfig model.

    Args:
        project_url: Project URL to include, if known
    """
    config_dict = MdboardConfig.default().model_dump(mode="json")
    project = {k: v for k, v in config_dict["project"].items() if v is not None}
    if project_url:
        project["project_url"] = project_url
    config_dict["project"] = project
    yaml_content = yaml.safe_dump(config_dict, default_flow_style=False, sort_keys=False)
    return CONFIG_HEADER + yaml_content


def run_generate(project_root: Path, project_url: str | None = None) -> int:
    """
    Generate default configuration and the stories directory.

    Args:
        project_root: Directory where mdboard.yml will be created
        project_url: Optional project URL written into the config

    Returns:
        Exit code (0 = success, 1 = nothing to do or invalid input)
    """
    if project_url:
        try:
            MdboardConfig(project={"project_url": project_url})
        except ValueError as e:
            error(f"Invalid project URL: {e}")
            return 1

    config_path = project_root / CONFIG_FILE
    config_created = False
    if config_path.exists():
        info(f"Config exists: {config_path}")
    else:
        project_root.mkdir(parents=True, exist_ok=True)
        config_path.write_text(generate_config_yaml(project_url), encoding="utf-8")
        success(f"Generated config: {config_path}")
        config_created = True

    stories_dir = project_root / MdboardConfig.default().sync.stories_dir
    if stories_dir.exists():
        info(f"Directory exists: {stories_dir}/")
        dir_created = False
    else:
        stories_dir.mkdir(parents=True)
        success(f"Created directory: {stories_dir}/")
        dir_created = True

    if not config_created and not dir_created:
        print("Nothing to generate.")
        return 1
    return 0
