"""
Credential handling for the spreadsheet values API.

Credentials are read from environment variables only and are never written
to logs.
"""

import os
from typing import Dict, List, Tuple

from ..config import ConfigLoader
from ..exceptions import GeoAPIAuthenticationError
from ..utils import get_logger

logger = get_logger(__name__)

API_KEY_VARIABLE = 'GOOGLE_SHEETS_API_KEY'


class AuthHandler:
    """
    Resolves the spreadsheet API endpoint and key for an environment.
    """
    
    def __init__(self, config_loader: ConfigLoader):
        """
        Initialize the authentication handler.
        
        Args:
            config_loader: ConfigLoader instance for accessing configuration
        """
        self.config_loader = config_loader
        logger.debug("AuthHandler initialized")
    
    def get_sheets_credentials(self, environment: str = 'development') -> Tuple[str, str]:
        """
        Get the values API URL and key for an environment.
        
        Returns:
            Tuple of (api_url, api_key)
            
        Raises:
            GeoAPIAuthenticationError: If the URL or key is missing or invalid
        """
        try:
            env_config = self.config_loader.load_environment_config(environment)
        except Exception as e:
            logger.error(f"Failed to load {environment} configuration for credentials")
            raise GeoAPIAuthenticationError(f"Error loading {environment} credentials: {str(e)}")
        
        api_url = env_config.get('sheets_api_url')
        if not api_url:
            raise GeoAPIAuthenticationError(f"Sheets API URL not found in {environment} configuration")
        
        api_key = os.getenv(API_KEY_VARIABLE)
        if not api_key:
            raise GeoAPIAuthenticationError(f"{API_KEY_VARIABLE} environment variable not set")
        
        self._validate_api_key(api_key)
        
        logger.info(f"Loaded {environment} sheets credentials from environment variables")
        return api_url.rstrip('/'), api_key
    
    def _validate_api_key(self, api_key: str) -> None:
        """
        Raises:
            GeoAPIAuthenticationError: If the key is blank or contains whitespace
        """
        if not api_key.strip():
            raise GeoAPIAuthenticationError("API key cannot be empty")
        
        if any(ch.isspace() for ch in api_key):
            raise GeoAPIAuthenticationError("API key must not contain whitespace")
        
        logger.debug("Credential validation passed")
    
    def validate_environment_variables(self) -> Dict[str, bool]:
        """
        Report which required environment variables are set.
        
        Returns:
            Dictionary indicating which environment variables are set
        """
        validation_results = {}
        
        for var in self.get_required_environment_variables():
            is_set = bool(os.getenv(var))
            validation_results[var] = is_set
            
            # Log without exposing values
            if is_set:
                logger.debug(f"Environment variable {var} is set")
            else:
                logger.warning(f"Environment variable {var} is not set")
        
        return validation_results
    
    def get_required_environment_variables(self) -> List[str]:
        """Names of the environment variables needed to read the spreadsheet."""
        return [API_KEY_VARIABLE]
