"""OSCAL component definition parsing and compliance mapping helpers."""