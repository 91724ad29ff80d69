"""Module Processor Interface

Defines the abstract base class and result models that processing modules
implement so the command line and any hosting service can drive them the
same way.
"""

from abc import ABC, abstractmethod
from pydantic import BaseModel, Field
from typing import Optional, Dict, List, Any
from datetime import datetime


class ProcessingResult(BaseModel):
    """Result of one module processing run."""
    
    success: bool = Field(..., description="Whether the processing completed successfully")
    records_processed: int = Field(ge=0, description="Number of records processed")
    errors: List[str] = Field(default_factory=list, description="List of error messages if any")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Additional processing metadata")
    execution_time: float = Field(ge=0.0, description="Processing execution time in seconds")


class ModuleStatus(BaseModel):
    """Operational status reported by a module."""
    
    module_name: str = Field(..., description="Name of the processing module")
    is_configured: bool = Field(..., description="Whether the module is properly configured")
    last_run: Optional[datetime] = Field(None, description="Timestamp of the last successful processing run")
    status: str = Field(..., description="Current module status: 'ready', 'running', 'error', 'disabled'")
    health_check: bool = Field(..., description="Result of the most recent health check")


class ModuleProcessor(ABC):
    """Abstract base class for processing modules.
    
    Concrete modules receive the shared ConfigLoader, validate their own
    configuration, run their processing step and report status.
    """
    
    @abstractmethod
    def __init__(self, config_loader):
        """Initialize module with shared configuration.
        
        Args:
            config_loader: ConfigLoader instance providing access to framework configuration
        """
        pass
    
    @abstractmethod
    def validate_configuration(self) -> bool:
        """Validate module-specific configuration.
        
        Returns:
            bool: True if configuration is valid and complete, False otherwise
        """
        pass
    
    @abstractmethod
    def process(self, dry_run: bool = False) -> ProcessingResult:
        """Execute module processing logic.
        
        Args:
            dry_run: If True, compute results without publishing them
            
        Returns:
            ProcessingResult: Standardized result object with success status, metrics, and errors
        """
        pass
    
    @abstractmethod
    def get_status(self) -> ModuleStatus:
        """Get current module status.
        
        Returns:
            ModuleStatus: Current module status and health information
        """
        pass
