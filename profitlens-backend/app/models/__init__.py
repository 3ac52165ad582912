from .portfolio import (
    PROJECT_STATUSES,
    Assignment,
    EmployeeRecord,
    PortfolioSnapshot,
    ProjectExtension,
    ProjectRecord,
    SalaryRecord,
    StatusChange,
)
from .profit_loss import (
    EmployeeAnalysis,
    FinancialYearBreakdown,
    ProfitLossReport,
    ProjectAnalysis,
)
from .projects import (
    STATUS_PATTERN,
    AssignmentCreate,
    ClientCreate,
    ClientUpdate,
    EmployeeCreate,
    EmployeeUpdate,
    ExtensionCreate,
    ProjectCreate,
    ProjectDetail,
    ProjectFinancials,
    ProjectStats,
    ProjectUpdate,
    SalaryRecordCreate,
    StatusChangeCreate,
)

__all__ = [
    "PROJECT_STATUSES",
    "STATUS_PATTERN",
    "Assignment",
    "AssignmentCreate",
    "ClientCreate",
    "ClientUpdate",
    "EmployeeCreate",
    "EmployeeUpdate",
    "EmployeeAnalysis",
    "EmployeeRecord",
    "ExtensionCreate",
    "FinancialYearBreakdown",
    "PortfolioSnapshot",
    "ProfitLossReport",
    "ProjectCreate",
    "ProjectDetail",
    "ProjectAnalysis",
    "ProjectExtension",
    "ProjectFinancials",
    "ProjectRecord",
    "ProjectStats",
    "ProjectUpdate",
    "SalaryRecord",
    "SalaryRecordCreate",
    "StatusChange",
    "StatusChangeCreate",
]
