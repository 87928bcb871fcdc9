"""Open Cluster Management support: result mapping and assessment results."""