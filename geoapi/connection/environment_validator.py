"""
Environment validator for the Smart GeoAPI feature service.

Reports whether an environment has what the feature service needs to run.
"""

from typing import Dict

from .auth_handler import AuthHandler
from ..config import ConfigLoader
from ..exceptions import GeoAPIValidationError
from ..utils import get_logger

logger = get_logger(__name__)


class EnvironmentValidator:
    """Checks credentials, configuration structure and snapshot ranges."""
    
    def __init__(self, config_loader: ConfigLoader):
        self.config_loader = config_loader
        self.auth_handler = AuthHandler(config_loader)
        logger.debug("EnvironmentValidator initialized")
    
    def validate_environment(self, environment: str = 'development') -> Dict[str, bool]:
        """
        Validate an environment configuration.
        
        Returns:
            Mapping of check name to pass/fail
            
        Raises:
            GeoAPIValidationError: If the configuration cannot be loaded at all
        """
        results = {
            'environment_variables': False,
            'config_structure': False,
            'sheet_ranges': False
        }
        
        try:
            env_vars = self.auth_handler.validate_environment_variables()
            results['environment_variables'] = all(env_vars.values())
            
            env_config = self.config_loader.load_environment_config(environment)
            sheet = env_config.get('sheet', {})
            if env_config.get('sheets_api_url') and sheet.get('spreadsheet_id'):
                results['config_structure'] = True
                logger.debug("Configuration structure validation passed")
            
            ranges = sheet.get('ranges', {})
            if ranges.get('current'):
                results['sheet_ranges'] = True
                if not ranges.get('previous'):
                    logger.warning("No previous snapshot range configured - change annotations disabled")
            
            passed_count = sum(results.values())
            logger.info(f"Environment validation: {passed_count}/{len(results)} checks passed")
            
            return results
            
        except Exception as e:
            error_msg = f"Environment validation failed: {str(e)}"
            logger.error(error_msg)
            raise GeoAPIValidationError(error_msg)
