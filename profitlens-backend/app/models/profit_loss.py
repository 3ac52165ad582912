from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProjectAnalysis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    id: str
    name: str
    revenue: float
    cost: float
    profit: float
    margin: float
    duration_days: int = Field(alias="durationDays")
    hold_days: int = Field(default=0, alias="holdDays")
    status: str
    financial_year: str = Field(alias="financialYear")
    effective_end_date: Optional[date] = Field(default=None, alias="effectiveEndDate")


class EmployeeAnalysis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    id: str
    name: str
    total_salary_cost: float = Field(alias="totalSalaryCost")
    projects_worked: int = Field(alias="projectsWorked")
    revenue_generated: float = Field(alias="revenueGenerated")
    profit_contribution: float = Field(alias="profitContribution")
    utilization_rate: float = Field(alias="utilizationRate")
    active_days: int = Field(default=0, alias="activeDays")
    total_days: int = Field(default=0, alias="totalDays")


class FinancialYearBreakdown(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    label: str
    revenue: float
    cost: float
    profit: float
    margin: float
    project_count: int = Field(alias="projectCount")


class ProfitLossReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    overall_profit: float = Field(alias="overallProfit")
    total_revenue: float = Field(alias="totalRevenue")
    total_costs: float = Field(alias="totalCosts")
    overall_margin: float = Field(alias="overallMargin")
    project_analysis: List[ProjectAnalysis] = Field(default_factory=list, alias="projectAnalysis")
    employee_analysis: List[EmployeeAnalysis] = Field(default_factory=list, alias="employeeAnalysis")
    financial_year_breakdown: List[FinancialYearBreakdown] = Field(default_factory=list, alias="financialYearBreakdown")
    window_start: Optional[date] = Field(default=None, alias="windowStart")
    window_end: Optional[date] = Field(default=None, alias="windowEnd")
    as_of: datetime = Field(alias="asOf")
